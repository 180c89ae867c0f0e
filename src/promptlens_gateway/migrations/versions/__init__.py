"""
Versioned migrations, in application order.

Append-only: never edit or reorder an entry once released.
"""

from . import v001_initial_schema, v002_add_templates, v003_add_gpt_4o

MIGRATION_MODULES = [
    v001_initial_schema,
    v002_add_templates,
    v003_add_gpt_4o,
]
