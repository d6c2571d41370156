"""
Accounts App - portal principals.

Holds the custom email-based User model and its role. Sign-in, sessions and
profile management are handled outside this project; the role is what the
meal and settlement permissions read.
"""
