"""Pipeline core: orchestration, stage machine, tool execution, persistence."""
