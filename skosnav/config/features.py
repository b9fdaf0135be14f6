"""
Feature Flags Configuration

Centralized feature flag management for optional discovery behavior.
"""

import logging
import os
from typing import Any

logger = logging.getLogger(__name__)


class FeatureFlags:
	"""
	Feature flag manager for optional functionality.
	
	Features can be enabled/disabled via environment variables:
	- FEATURE_PARANOID_DISCOVERY=true
	- FEATURE_LEAF_VERIFICATION=false
	- etc.
	"""
	
	def __init__(self):
		"""Initialize feature flags from environment variables."""
		# Run property-path stages even when transitive predicates exist
		self.paranoid_discovery_enabled = self._get_flag('FEATURE_PARANOID_DISCOVERY', default=False)
		self.leaf_verification_enabled = self._get_flag('FEATURE_LEAF_VERIFICATION', default=True)
		self.progressive_labels_enabled = self._get_flag('FEATURE_PROGRESSIVE_LABELS', default=True)
		self.xml_fallback_enabled = self._get_flag('FEATURE_XML_FALLBACK', default=True)
		
		self._log_enabled_features()
	
	def _get_flag(self, env_var: str, default: bool = False) -> bool:
		"""
		Get feature flag from environment variable.
		
		Args:
			env_var: Environment variable name
			default: Default value if not set
		
		Returns:
			True if enabled, False otherwise
		"""
		value = os.getenv(env_var, str(default)).lower()
		return value in ('true', '1', 'yes', 'on', 'enabled')
	
	def _log_enabled_features(self):
		"""Log enabled features for debugging."""
		enabled_features = []
		
		if self.paranoid_discovery_enabled:
			enabled_features.append('ParanoidDiscovery')
		if self.leaf_verification_enabled:
			enabled_features.append('LeafVerification')
		if self.progressive_labels_enabled:
			enabled_features.append('ProgressiveLabels')
		if self.xml_fallback_enabled:
			enabled_features.append('XmlFallback')
		
		if enabled_features:
			logger.debug(f"Enabled features: {', '.join(enabled_features)}")
		else:
			logger.debug("No optional features enabled")
	
	def to_dict(self) -> dict[str, Any]:
		"""Export feature flags as dictionary."""
		return {
			'paranoid_discovery': self.paranoid_discovery_enabled,
			'leaf_verification': self.leaf_verification_enabled,
			'progressive_labels': self.progressive_labels_enabled,
			'xml_fallback': self.xml_fallback_enabled,
		}


# Global feature flags instance
_feature_flags: FeatureFlags | None = None


def get_feature_flags() -> FeatureFlags:
	"""
	Get global feature flags instance.
	
	Returns:
		FeatureFlags instance
	"""
	global _feature_flags
	if _feature_flags is None:
		_feature_flags = FeatureFlags()
	return _feature_flags


def reload_feature_flags() -> FeatureFlags:
	"""Reload feature flags from environment (useful for testing)."""
	global _feature_flags
	_feature_flags = FeatureFlags()
	return _feature_flags
