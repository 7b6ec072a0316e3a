"""Maven build + SonarQube analysis runner."""
