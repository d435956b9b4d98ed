"""Core resource logic for app role assignments.

Modules:
- graph/: Microsoft Graph client and services
- resource.py: Resource contract and schema declarations
- app_role_assignment.py: The azuread_app_role_assignment resource
- provider.py: Host that registers resources and enforces timeouts
- ids.py: Composite identifier parsing and formatting
- diagnostics.py: Diagnostics reported instead of exceptions
- state.py: JSON state store used by the CLI
"""
