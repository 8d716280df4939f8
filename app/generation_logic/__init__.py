"""Generation logic package.

This package groups the wizard state machine and the helpers it orchestrates
(upload validation, concurrent document generation, user-facing messages).
Keeping them here allows `app/api/routes.py` to stay minimal and focused on
HTTP routing while the wizard behaviour lives in composable modules.
"""

from .document_generation import generate_documents  # noqa: F401
from .file_processing import read_and_validate_upload  # noqa: F401
from .wizard_controller import WizardController  # noqa: F401
