# Centralized collection names to prevent drift.

COL_GROUPS = "groups"
COL_MEMBERS = "members"

# Billing records: billing_records/{member_id}_{period}
COL_BILLING_RECORDS = "billing_records"

# Firestore caps the number of values in an "in" filter.
FIRESTORE_IN_LIMIT = 30
