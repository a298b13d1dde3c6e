"""
Package-level tests of krylov_eigsolve (imports, exports, metadata).

Module-level tests live beside the code in krylov_eigsolve/*/tests.
"""
