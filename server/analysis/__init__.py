"""
Repo Mirror analysis pipeline

- identity: owner/name parsing
- data_extractor: GitHub metadata, structure, sample and README phases
- prompt: assessment prompt rendering
- pipeline: orchestration, metrics builder and result aggregation
- schemas: pydantic models shared by all of the above and the API
"""
