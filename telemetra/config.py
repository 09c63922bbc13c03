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

import configparser
import logging
import os
import threading

import telemetra.core.config
import telemetra.core.log_file
from telemetra.core.exceptions import ConfigurationError

__all__ = ["initialize"]

_logger = logging.getLogger(__name__)

# Names of configuration file and deployment environment. This
# will be overridden by the load_configuration() function when
# configuration is loaded.

_config_file = None
_environment = None
_ignore_errors = True

# This is the actual internal settings object. Options which
# are read from the configuration file will be applied to this.

_settings = telemetra.core.config.global_settings()

# Use the raw config parser as we want to avoid interpolation
# within values.

_config_object = configparser.RawConfigParser()

# Cache of the parsed global settings found in the configuration
# file. We cache these so can dump them out to the log file once
# all the settings have been read.

_cache_object = []

_configuration_done = False

_configuration_lock = threading.Lock()

# Define some mapping functions to convert raw values read from
# configuration file into the internal types expected by the
# internal configuration settings object.

_LOG_LEVEL = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
}


def _map_log_level(s):
    return _LOG_LEVEL[s.upper()]


def _map_log_file(s):
    if s in ("stdout", "stderr"):
        return s
    return os.path.expanduser(s)


def _raise_configuration_error(section, option=None):
    _logger.error("CONFIGURATION ERROR")
    if section:
        _logger.error("Section = %s", section)

    if option is None:
        options = _config_object.options(section)

        _logger.error("Options = %s", options)
        _logger.exception("Exception Details")

        if not _ignore_errors:
            if section:
                raise ConfigurationError(
                    f'Invalid configuration for section "{section}". Check agent log file for further details.'
                )
            raise ConfigurationError("Invalid configuration. Check agent log file for further details.")

    else:
        _logger.error("Option = %s", option)
        _logger.exception("Exception Details")

        if not _ignore_errors:
            if section:
                raise ConfigurationError(
                    f'Invalid configuration for option "{option}" in section "{section}". Check agent log file '
                    "for further details."
                )
            raise ConfigurationError(
                f'Invalid configuration for option "{option}". Check agent log file for further details.'
            )


def _process_setting(section, option, getter, mapper):
    try:
        # The type of a value is dictated by the getter
        # function supplied.

        value = getattr(_config_object, getter)(section, option)

        # The getter parsed the value okay but want to
        # pass this through a mapping function to change
        # it to internal value suitable for internal
        # settings object. This is usually one where the
        # value was a string.

        if mapper:
            value = mapper(value)

        # Now need to apply the option from the
        # configuration file to the internal settings
        # object. Walk the object path and assign it.

        telemetra.core.config.apply_config_setting(_settings, option, value)

        # Cache the configuration so can be dumped out to
        # log file when whole main configuration has been
        # processed. This ensures that the log file and log
        # level entries have been set.

        _cache_object.append((option, value))

    except configparser.NoSectionError:
        pass

    except configparser.NoOptionError:
        pass

    except Exception:
        _raise_configuration_error(section, option)


# Processing of all the settings for specified section except
# for log file and log level which are applied separately to
# ensure they are set as soon as possible.


def _process_configuration(section):
    _process_setting(section, "app_name", "get", None)
    _process_setting(section, "high_security", "getboolean", None)
    _process_setting(section, "apdex_t", "getfloat", None)
    _process_setting(section, "harvest_interval", "getfloat", None)
    _process_setting(section, "shutdown_timeout", "getfloat", None)
    _process_setting(section, "error_collector.enabled", "getboolean", None)
    _process_setting(section, "error_collector.capture_events", "getboolean", None)
    _process_setting(section, "error_collector.max_event_samples_stored", "getint", None)
    _process_setting(section, "custom_insights_events.enabled", "getboolean", None)
    _process_setting(section, "custom_insights_events.max_samples_stored", "getint", None)
    _process_setting(section, "custom_insights_events.max_attribute_value", "getint", None)
    _process_setting(section, "transaction_events.enabled", "getboolean", None)
    _process_setting(section, "transaction_events.max_samples_stored", "getint", None)
    _process_setting(section, "agent_limits.errors_per_harvest", "getint", None)
    _process_setting(section, "agent_limits.errors_per_transaction", "getint", None)
    _process_setting(section, "agent_limits.metrics_per_harvest", "getint", None)
    _process_setting(section, "agent_limits.max_stack_trace_lines", "getint", None)
    _process_setting(section, "agent_limits.merge_stats_maximum", "getint", None)
    _process_setting(section, "debug.log_raw_metric_data", "getboolean", None)
    _process_setting(section, "debug.log_harvest_snapshot", "getboolean", None)


def _reset_configuration_done():
    global _configuration_done
    global _config_object

    _configuration_done = False
    _config_object = configparser.RawConfigParser()
    _cache_object[:] = []


def _load_configuration(config_file=None, environment=None, ignore_errors=True):
    global _configuration_done

    global _config_file
    global _environment
    global _ignore_errors

    # Check whether initialisation has been done previously. If
    # it has then raise a configuration error if it was against
    # a different configuration. Otherwise just return.

    if _configuration_done:
        if _config_file != config_file or _environment != environment:
            raise ConfigurationError(
                "Configuration has already been done against differing configuration file or environment. "
                f'Prior configuration file used was "{_config_file}" and environment "{_environment}".'
            )
        return

    _configuration_done = True

    # Update global variables tracking what configuration file and
    # environment was used, plus whether errors are to be ignored.

    _config_file = config_file
    _environment = environment
    _ignore_errors = ignore_errors

    # If no configuration file then nothing more to be done.

    if not config_file:
        _logger.debug("no agent configuration file")

        # Force initialisation of the logging system now in case
        # setup provided by environment variables.

        telemetra.core.log_file.initialize()
        return

    _logger.debug("agent configuration file was %s", config_file)

    # Now read in the configuration file. Cache the config file
    # name in internal settings object as indication of succeeding.

    if not _config_object.read([config_file]):
        raise ConfigurationError(f"Unable to open configuration file {config_file}.")

    _settings.config_file = config_file

    # Must process log file entries first so that errors with
    # the remainder will get logged if log file is defined.

    _process_setting("telemetra", "log_file", "get", _map_log_file)
    _process_setting("telemetra", "log_level", "get", _map_log_level)

    if environment:
        _process_setting(f"telemetra:{environment}", "log_file", "get", _map_log_file)
        _process_setting(f"telemetra:{environment}", "log_level", "get", _map_log_level)

    # Force initialisation of the logging system now that we
    # have the log file and log level.

    telemetra.core.log_file.initialize()

    # Now process the remainder of the global configuration
    # settings.

    _process_configuration("telemetra")

    # And any overrides specified with a section corresponding
    # to a specific deployment environment.

    if environment:
        _settings.environment = environment
        _process_configuration(f"telemetra:{environment}")

    telemetra.core.config.update_dynamic_settings(_settings)

    # Log details of the configuration options which were
    # read and the values they have as would be applied
    # against the internal settings object.

    for option, value in _cache_object:
        _logger.debug("agent config %s = %r", option, value)


def initialize(config_file=None, environment=None, ignore_errors=True):
    """Loads the agent configuration file and initialises the logging
    system. Where no configuration file or environment is supplied, those
    named by the environment variables are used.

    """

    if config_file is None:
        config_file = os.environ.get("TELEMETRA_CONFIG_FILE", None)

    if environment is None:
        environment = os.environ.get("TELEMETRA_ENVIRONMENT", None)

    with _configuration_lock:
        _load_configuration(config_file, environment, ignore_errors)
