"""Pipeline components: fetch orchestration, job queue, worker, fan-out."""
