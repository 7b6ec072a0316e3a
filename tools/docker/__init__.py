"""Docker Compose manifest generation for the SonarQube + PostgreSQL pair."""
