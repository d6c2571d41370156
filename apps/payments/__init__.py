"""
Payments App - tuition and meal payments ledger.

Only the credit entries produced by meal refunds are created from code in
this project; other ledger entries are maintained in the Django admin.
"""
