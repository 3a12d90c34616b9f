"""
Patch Workflow

Workflow: Decode → Parse patch → Apply → Encode

The source document is decoded exactly once before the engine runs and
encoded exactly once after it succeeded. FormatError from the adapter is
not caught.
"""
import logging
from typing import Any, Dict, Optional, Union

from adapters.kfm import FormatAdapter, YamlFormatAdapter
from core.patch.engine import PatchEngine
from core.patch.errors import FatalPatchError
from core.patch.parser import parse_patch

logger = logging.getLogger(__name__)


class PatchWorkflow:
    """
    Patch workflow manager

    Handles the complete patch stage: source bytes + patch text → patched bytes
    """

    def __init__(self, adapter: Optional[FormatAdapter] = None, engine: Optional[PatchEngine] = None):
        """
        Initialize patch workflow

        Args:
            adapter: Format adapter (YAML adapter if None)
            engine: Patch engine (configured from the environment if None)
        """
        self.adapter = adapter or YamlFormatAdapter()
        self.engine = engine or PatchEngine()

    def run_patch_workflow(self, source: bytes, patch_source: Union[str, bytes]) -> Dict[str, Any]:
        """
        Run complete patch workflow

        Args:
            source: Raw keyframe motion bytes
            patch_source: Patch text (YAML)

        Returns:
            Workflow result dict:
                success: True when the run is done
                output: Encoded patched document (None on failure)
                warnings: Warning messages in order
                error: Fatal error message (None on success)
                error_type: Fatal error class name
                failed_at: Position of the failing action
        """
        result = {
            "success": False,
            "output": None,
            "warnings": [],
            "error": None,
            "error_type": None,
            "failed_at": None
        }

        # Step 1: Decode source
        document = self.adapter.decode(source)

        # Step 2: Parse patch
        try:
            patch_file = parse_patch(patch_source)
        except FatalPatchError as e:
            logger.error(f"Patch source rejected: {e}")
            result["error"] = str(e)
            result["error_type"] = type(e).__name__
            result["failed_at"] = e.position
            return result

        # Step 3: Apply
        run = self.engine.run(document.body, patch_file)
        result["warnings"] = [str(w) for w in run.warnings]
        if not run.done:
            result["error"] = run.error
            result["error_type"] = run.error_type
            result["failed_at"] = run.failed_at
            return result

        # Step 4: Encode
        patched = document.model_copy(update={"body": run.model})
        result["output"] = self.adapter.encode(patched)
        result["success"] = True
        return result

    def display_result(self, result: Dict[str, Any]) -> None:
        """
        Display a workflow result (console output)

        Args:
            result: Result of run_patch_workflow
        """
        print("=" * 60)
        print("Patch Report")
        print("=" * 60)
        print(f"Status: {'DONE' if result['success'] else 'FAILED'}")
        if result["error"]:
            where = ".".join(str(p) for p in result["failed_at"] or ())
            print(f"Error: {result['error_type']} at action {where or '-'}")
            print(f"  {result['error']}")
        print(f"Warnings: {len(result['warnings'])}")
        for i, warning in enumerate(result["warnings"], 1):
            print(f"  {i}. {warning}")
        print("=" * 60)
