"""
Errors raised by model transports.
"""


class TransportUnavailableError(RuntimeError):
	"""
	Transport cannot be used (missing SDK, missing credential, bad config).
	"""


class GenerationError(RuntimeError):
	"""
	Model call was attempted and failed.
	"""
