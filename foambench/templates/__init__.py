"""
Case templates and workspace materialization.
"""

from .materializer import CaseWorkspace, DEFAULT_TEMPLATE_DIR, materialize_case

__all__ = ['CaseWorkspace', 'DEFAULT_TEMPLATE_DIR', 'materialize_case']
