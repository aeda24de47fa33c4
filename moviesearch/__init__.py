"""MovieSearch — movie catalog search client with user favorites."""

__version__ = "1.0.0"
