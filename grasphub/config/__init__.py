from .hand_description import HandProfileResolver, ParameterStore, YamlParameterStore
from .settings import DEFAULT_CONFIG_PATH, ServiceSettings, load_settings

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "HandProfileResolver",
    "ParameterStore",
    "ServiceSettings",
    "YamlParameterStore",
    "load_settings",
]
