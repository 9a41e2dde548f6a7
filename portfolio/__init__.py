"""Portfolio admin: session auth, admin-area guard and first-admin setup."""
