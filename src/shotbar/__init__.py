"""shotbar – periodic screenshots that stop once the screen stops changing."""

__version__ = "0.1.0"
