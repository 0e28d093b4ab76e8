"""authgate: email/password and GitHub login with server-side sessions."""
