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

"""This module provides a structure to hang the configuration settings. We
use an empty class structure and manually populate it. The global defaults
will be overlaid with any settings from the local agent configuration file.
For a specific application we then deep copy the global default settings
and overlay that with any overrides supplied for that application. The
remote policy pushed to an application is held separately and is not part
of the settings object.

"""

import copy
import logging
import os

# The Settings objects and the global default settings. We create a
# distinct type for each sub category of settings that the agent knows
# about so that an error when accessing a non existent setting is more
# descriptive and identifies the category of settings.


class Settings:
    def __repr__(self):
        return repr(self.__dict__)

    def __iter__(self):
        return iter(flatten_settings(self).items())

    def __contains__(self, item):
        return hasattr(self, item)


class ErrorCollectorSettings(Settings):
    pass


class CustomInsightsEventsSettings(Settings):
    pass


class TransactionEventsSettings(Settings):
    pass


class AgentLimitsSettings(Settings):
    pass


class DebugSettings(Settings):
    pass


_settings = Settings()
_settings.error_collector = ErrorCollectorSettings()
_settings.custom_insights_events = CustomInsightsEventsSettings()
_settings.transaction_events = TransactionEventsSettings()
_settings.agent_limits = AgentLimitsSettings()
_settings.debug = DebugSettings()

_LOG_LEVEL = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
}


def _environ_as_bool(name, default=False):
    flag = os.environ.get(name, default)
    if default is None or default:
        try:
            flag = not flag.lower() in ["off", "false", "0"]
        except AttributeError:
            pass
    else:
        try:
            flag = flag.lower() in ["on", "true", "1"]
        except AttributeError:
            pass
    return flag


def _environ_as_float(name, default=0.0):
    val = os.environ.get(name, default)

    try:
        return float(val)
    except ValueError:
        return default


def _environ_as_int(name, default=0):
    val = os.environ.get(name, default)

    try:
        return int(val)
    except ValueError:
        return default


def _map_log_level(name, default=logging.INFO):
    return _LOG_LEVEL.get(str(name).upper(), default)


_settings.config_file = os.environ.get("TELEMETRA_CONFIG_FILE", None)
_settings.environment = os.environ.get("TELEMETRA_ENVIRONMENT", None)

_settings.log_file = os.environ.get("TELEMETRA_LOG", None)
_settings.log_level = _map_log_level(os.environ.get("TELEMETRA_LOG_LEVEL", "INFO"))

_settings.app_name = os.environ.get("TELEMETRA_APP_NAME", "Python Application")

_settings.high_security = _environ_as_bool("TELEMETRA_HIGH_SECURITY", False)

_settings.apdex_t = _environ_as_float("TELEMETRA_APDEX_T", 0.5)

_settings.harvest_interval = _environ_as_float("TELEMETRA_HARVEST_INTERVAL", 60.0)
_settings.shutdown_timeout = _environ_as_float("TELEMETRA_SHUTDOWN_TIMEOUT", 2.5)

_settings.error_collector.enabled = True
_settings.error_collector.capture_events = True
_settings.error_collector.max_event_samples_stored = 100

_settings.custom_insights_events.enabled = True
_settings.custom_insights_events.max_samples_stored = 1200
_settings.custom_insights_events.max_attribute_value = 4095

_settings.transaction_events.enabled = True
_settings.transaction_events.max_samples_stored = 1200

_settings.agent_limits.errors_per_harvest = 20
_settings.agent_limits.errors_per_transaction = 5
_settings.agent_limits.metrics_per_harvest = 2000
_settings.agent_limits.max_stack_trace_lines = 50
_settings.agent_limits.merge_stats_maximum = 5

_settings.debug.log_raw_metric_data = False
_settings.debug.log_harvest_snapshot = False


def global_settings():
    """This returns the default global settings. Generally only used
    directly in test scripts and test harnesses or when applying global
    settings from agent configuration file. Making changes to the settings
    object returned by this function will not have any effect on any
    applications that have already been initialised. This is because when
    an application is created a snapshot of these settings is taken.

    >>> global_settings = global_settings()
    >>> global_settings.error_collector.enabled = False
    >>> global_settings.error_collector.enabled
    False

    """

    return _settings


def flatten_settings(settings):
    """This returns dictionary of settings flattened into a single
    key namespace rather than nested hierarchy.

    """

    def _flatten(settings, name, object):
        for key, value in object.__dict__.items():
            if isinstance(value, Settings):
                if name:
                    _flatten(settings, f"{name}.{key}", value)
                else:
                    _flatten(settings, key, value)
            else:
                if name:
                    settings[f"{name}.{key}"] = value
                else:
                    settings[key] = value

        return settings

    return _flatten({}, None, settings)


def apply_config_setting(settings_object, name, value):
    """Apply a setting to the settings object where name is a dotted path.
    If there is no pre existing settings object for a sub category then
    one will be created and added automatically.

    >>> name = 'error_collector.capture_events'
    >>> value = False
    >>>
    >>> global_settings = global_settings()
    >>> apply_config_setting(global_settings, name, value)

    """

    target = settings_object
    fields = name.split(".", 1)

    while len(fields) > 1:
        if not hasattr(target, fields[0]):
            setattr(target, fields[0], Settings())
        target = getattr(target, fields[0])
        fields = fields[1].split(".", 1)

    setattr(target, fields[0], value)


def fetch_config_setting(settings_object, name):
    """Fetch a setting from the settings object where name is a dotted path.

    >>> name = 'error_collector.capture_events'
    >>>
    >>> global_settings = global_settings()
    >>> fetch_config_setting(global_settings, name)
    True

    """

    target = settings_object
    fields = name.split(".", 1)

    target = getattr(target, fields[0])

    while len(fields) > 1:
        fields = fields[1].split(".", 1)
        target = getattr(target, fields[0])

    return target


def update_dynamic_settings(settings_object):
    """Updates any dynamically calculated settings values. This would
    generally be applied on a copy of the global default settings and
    not directly.

    >>> settings_snapshot = copy.deepcopy(_settings)
    >>> update_dynamic_settings(settings_snapshot)

    """

    settings_object.apdex_f = 4 * settings_object.apdex_t


def create_settings_snapshot(overrides=None):
    """Create a snapshot of the global default settings and overlay it
    with any settings overrides specific to one application. The
    overrides are a dictionary keyed by the dotted setting name. The
    intention is that the resulting settings object will be cached for
    subsequent use within the application object the settings pertain to.

    >>> overrides = {'high_security': True}
    >>>
    >>> settings_snapshot = create_settings_snapshot(overrides)

    """

    settings_snapshot = copy.deepcopy(_settings)

    for name, value in (overrides or {}).items():
        apply_config_setting(settings_snapshot, name, value)

    update_dynamic_settings(settings_snapshot)

    return settings_snapshot
