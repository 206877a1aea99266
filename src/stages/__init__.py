"""
Pipeline stages package.

Each stage module follows a consistent pattern:
- Docstring with Purpose and Input/Output files documented
- STAGE constant holding the stage id used by profiles and watch bindings
- main(paths=None, verbose=True, **options) entry point returning StageResult
"""
