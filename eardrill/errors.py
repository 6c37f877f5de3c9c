class ConfigurationError(ValueError):
	"""The drill configuration cannot produce any question."""
