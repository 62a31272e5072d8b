"""Identity-core services: lifecycle states, credentials, passcodes and role assignments."""
