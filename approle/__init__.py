"""Manage Microsoft Entra ID app role assignments through Microsoft Graph."""

__version__ = "0.1.0"
