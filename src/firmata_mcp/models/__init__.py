"""Engine state models."""

from .pins import PinStateTable
