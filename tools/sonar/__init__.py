"""SonarQube integration modules.

Split into:
  - api.py       : all HTTP calls to the SonarQube Web API
  - reconcile.py : query-then-create for quality gate, quality profile, project
  - tokens.py    : token generation / persistence / validation
  - properties.py: sonar-project.properties generation
  - types.py     : small shared data structures
  - profiles/    : restorable quality profile backups

workflow/controller.py acts as the orchestration layer.
"""
