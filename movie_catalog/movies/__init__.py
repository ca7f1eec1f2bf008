"""Movie records: query building, persistence, orchestration and routes."""
