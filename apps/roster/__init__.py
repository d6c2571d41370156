"""
Roster App - kindergarten groups and enrolled children.

Roster maintenance happens in the Django admin; the rest of the project
only reads from it through ``apps.roster.services``.
"""
