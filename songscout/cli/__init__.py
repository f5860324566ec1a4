# =============================================================================
# songscout/cli/__init__.py -- CLI Module Overview
# =============================================================================
#
# Operator commands that run the pipeline without the API server:
#
#   worker            Standalone enrichment worker.  Recovers jobs left
#                     running by a dead process, then polls until Ctrl-C.
#   fetch             One playlist fetch batch, printed as a summary.
#   audit-duplicates  Report of songwriter profiles that look like the
#                     same person.  Report only; nothing is merged.
#
# All commands build the same components as the server (songscout.main)
# and share its SQLite database.  The import of songscout.main is deferred
# into each handler so ``--help`` stays fast.
# =============================================================================

"""Command-line tools for songscout: ``python -m songscout.cli <command>``."""
