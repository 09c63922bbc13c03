# Copyright 2010 New Relic, Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#      http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""This module implements functions for deriving the full name of an object
and of the function executing in a stack frame.

"""

import sys

_BUILTIN_MODULES = ("builtins", "exceptions")


def _module_name(object):
    mname = None

    # For the module name we first need to deal with the special
    # case of getset and member descriptors. In this case we
    # grab the module name from the class the descriptor was
    # being used in which is held in __objclass__.

    if hasattr(object, "__objclass__"):
        mname = getattr(object.__objclass__, "__module__", None)

    # The standard case is that we can just grab the __module__
    # attribute from the object.

    if mname is None:
        mname = getattr(object, "__module__", None)

    # An exception to that is builtins or any types which are
    # implemented in C code. For that we need to grab the module
    # name from the __class__.

    if mname is None and hasattr(object, "__class__"):
        mname = getattr(object.__class__, "__module__", None)

    # Finally, if the module name isn't in sys.modules, we will
    # format it within '<>' to denote that it is a generated
    # class of some sort where a fake namespace was used.

    if mname and mname not in sys.modules:
        mname = f"<{mname}>"

    if not mname:
        mname = "<unknown>"

    return mname


def object_context(object):
    """Returns a tuple identifying the supplied object. This will be of
    the form (module, object_path).

    """

    # Check whether the object is actually a wrapper. By
    # convention the wrapped object beneath is available as
    # __wrapped__ and we use that instead.

    object = getattr(object, "__wrapped__", object)

    # For functions and methods the __qualname__ attribute gives
    # us the name including any class or outer function it is
    # defined in. If there is no __qualname__ it should mean it
    # is an instance of some sort and we use the name of the
    # class.

    path = getattr(object, "__qualname__", None)

    if path is None and hasattr(object, "__class__"):
        path = object.__class__.__qualname__

    return (_module_name(object), path)


def callable_name(object, separator=":"):
    """Returns a string name identifying the supplied object. This will be
    of the form 'module:object_path'.

    If object were a function, then the name would be 'module:function'. If
    a class, 'module:class'. If a member function, 'module:class.function'.

    """

    return separator.join(object_context(object))


def exception_type_name(value, separator=":"):
    """Returns the name of the class of an exception. Exceptions defined
    as builtins are named by their class name alone.

    """

    cls = type(value)
    module = getattr(cls, "__module__", None)
    name = getattr(cls, "__qualname__", cls.__name__)

    if not module or module in _BUILTIN_MODULES:
        return name

    return separator.join((module, name))


def frame_name(frame, separator=":"):
    """Returns the name of the function executing in the stack frame
    in the form 'module:function'. Where the interpreter records the
    qualified name against the code object, that is used so that
    methods include their class.

    """

    code = frame.f_code
    module = frame.f_globals.get("__name__") or "<unknown>"
    name = getattr(code, "co_qualname", code.co_name)

    return separator.join((module, name))
