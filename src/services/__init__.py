"""
Business logic services.

Import from the submodules directly (src.services.deals, ...); the
permission layer depends on src.services.exceptions, so this package
stays free of eager imports.
"""
