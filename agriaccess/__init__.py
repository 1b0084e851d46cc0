"""AgriAccess: role-based access control for the agricultural commerce platform."""

__version__ = "0.1.0"
