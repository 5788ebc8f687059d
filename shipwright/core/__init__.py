"""Release orchestration core: descriptor set, build jobs, matrix, manifest, fanout."""
