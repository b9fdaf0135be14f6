"""Configuration for skosnav."""

from skosnav.config.features import FeatureFlags, get_feature_flags, reload_feature_flags
from skosnav.config.settings import NavigatorSettings

__all__ = ['FeatureFlags', 'NavigatorSettings', 'get_feature_flags', 'reload_feature_flags']
