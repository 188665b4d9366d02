import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_USER_AGENT = "easyhttp/0.1.0"

_FALSY = ("0", "false", "no", "off")


@dataclass
class NamedValueFromEnvironment:
    _envvar: str
    _name: str
    _value: str
    _from_envvar: bool

    def __init__(
        self,
        envvar: str,
        name: str,
        value: Optional[str] = None,
        default: str = "",
    ):
        self._envvar = envvar
        self._name = name
        self._from_envvar = False
        if value is not None:
            self._value = value
        elif os.environ.get(envvar):
            self._value = os.environ[envvar]
            self._from_envvar = True
        else:
            self._value = default

    def __str__(self):
        return self.value

    @property
    def name(self) -> str:
        """Where the value came from: the environment variable, or the
        argument name."""
        return self._envvar if self._from_envvar else self._name

    @property
    def value(self) -> str:
        return self._value

    @value.setter
    def value(self, value: str):
        self._value = value
        self._from_envvar = False


class ClientConfig:
    """Settings applied to the transport clients built by easyhttp.

    Values passed as arguments take precedence over the EASYHTTP_*
    environment variables.
    """

    __slots__ = ("user_agent", "follow_redirects")

    user_agent: NamedValueFromEnvironment
    follow_redirects: NamedValueFromEnvironment

    def __init__(
        self,
        user_agent: Optional[str] = None,
        follow_redirects: Optional[bool] = None,
    ):
        self.user_agent = NamedValueFromEnvironment(
            "EASYHTTP_USER_AGENT", "user_agent", user_agent, DEFAULT_USER_AGENT
        )
        self.follow_redirects = NamedValueFromEnvironment(
            "EASYHTTP_FOLLOW_REDIRECTS",
            "follow_redirects",
            None if follow_redirects is None else str(follow_redirects).lower(),
            "true",
        )

    @property
    def redirects(self) -> bool:
        return self.follow_redirects.value.strip().lower() not in _FALSY

    def __repr__(self):
        return (
            f"ClientConfig(user_agent={self.user_agent.value!r}, "
            f"follow_redirects={self.redirects!r})"
        )
