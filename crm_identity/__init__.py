"""CRM identity and access core: credentials, one-time passcodes and role assignments."""
