"""
Client configuration.

There is no process-wide configuration object.  A ClientConfig is
built by the caller (by hand, from the environment or from a JSON
file) and handed to the client's constructor.  For every setting the
client uses, in order: the explicit constructor argument, the value in
the ClientConfig, the built-in default below.
"""
import json
import logging
import os
from dataclasses import dataclass
from dataclasses import fields
from typing import Any
from typing import Dict
from typing import Optional

log = logging.getLogger("eventdav")

DEFAULT_BASE_URL = "http://xandikos:8000"
DEFAULT_CALENDAR_PATH = "/stonewall/calendars/calendar/"
## seconds
DEFAULT_LIST_TIMEOUT = 3.0
DEFAULT_QUERY_TIMEOUT = 5.0
DEFAULT_SYNC_TIMEOUT = 5.0
DEFAULT_UID_DOMAIN = "eventdav.invalid"

ENV_PREFIX = "EVENTDAV_"


@dataclass(frozen=True)
class ClientConfig:
    """
    Settings for a calendar client.  Anything left as None falls back
    to the module defaults.  Timeouts are in seconds.
    """

    base_url: Optional[str] = None
    calendar_path: Optional[str] = None
    list_timeout: Optional[float] = None
    query_timeout: Optional[float] = None
    sync_timeout: Optional[float] = None
    uid_domain: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClientConfig":
        """
        Build a config from a dict, ignoring unknown keys.  Timeouts
        given as strings (as they are in environment variables) are
        converted to float.
        """
        known = {f.name for f in fields(cls)}
        values = {}
        for key, value in data.items():
            key = key.lower().replace("-", "_")
            if key not in known:
                log.debug("ignoring unknown configuration key %s" % key)
                continue
            if key.endswith("_timeout") and value is not None:
                value = float(value)
            values[key] = value
        return cls(**values)

    @classmethod
    def from_env(cls, environ: Optional[Dict[str, str]] = None) -> "ClientConfig":
        """Read EVENTDAV_BASE_URL, EVENTDAV_CALENDAR_PATH, EVENTDAV_LIST_TIMEOUT, ..."""
        if environ is None:
            environ = os.environ
        return cls.from_dict(
            {
                key[len(ENV_PREFIX) :]: value
                for key, value in environ.items()
                if key.startswith(ENV_PREFIX) and key != ENV_PREFIX + "CONFIG_FILE"
            }
        )

    def merged(self, other: "ClientConfig") -> "ClientConfig":
        """Return a new config where the settings of other win, if set"""
        return ClientConfig(
            **{
                f.name: getattr(other, f.name)
                if getattr(other, f.name) is not None
                else getattr(self, f.name)
                for f in fields(self)
            }
        )


def read_config(fn: Optional[str]) -> Optional[ClientConfig]:
    """
    Read a JSON configuration file, like

        {"base_url": "https://cal.example.com", "list_timeout": 10}

    Without a file name, ``$EVENTDAV_CONFIG_FILE`` and
    ``~/.config/eventdav/config.json`` are tried.  Returns None if no
    usable file was found.
    """
    if not fn:
        fn = os.environ.get(ENV_PREFIX + "CONFIG_FILE")
    if not fn:
        fn = f"{os.environ.get('HOME', '/')}/.config/eventdav/config.json"

    try:
        with open(fn, "rb") as config_file:
            data = json.load(config_file)
    except FileNotFoundError:
        log.info("no config file found at %s" % fn)
        return None
    except ValueError:
        log.error("error in config file %s.  It will be ignored" % fn, exc_info=True)
        return None

    if not isinstance(data, dict):
        log.error("config file %s does not contain a JSON object, ignored" % fn)
        return None
    return ClientConfig.from_dict(data)
