"""deskprep — prepare build-time resources for the AstrBot desktop shell."""

__version__ = "0.1.0"
