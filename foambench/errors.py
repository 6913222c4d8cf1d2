"""
Error taxonomy for benchmark runs.

Everything that stops a run from producing results derives from
BenchmarkError. A solver that runs and exits non-zero is NOT an error here;
it is recorded as data in the results table.
"""


class BenchmarkError(Exception):
    """Base class for fatal benchmark failures."""
    code = "BENCHMARK_FAILED"


class ConfigurationError(BenchmarkError, ValueError):
    """Bad or missing user input (CLI flags, parameter ranges)."""
    code = "CONFIGURATION"


class MissingDependencyError(BenchmarkError):
    """The container does not provide a required executable."""
    code = "MISSING_DEPENDENCY"

    def __init__(self, executable: str, container: str):
        self.executable = executable
        self.container = container
        super().__init__(f"'{executable}' not found in container {container}")


class CasePreparationError(BenchmarkError):
    """blockMesh or decomposePar exited non-zero."""
    code = "CASE_PREPARATION"

    def __init__(self, step: str, exit_code: int, log_path):
        self.step = step
        self.exit_code = exit_code
        self.log_path = log_path
        super().__init__(f"{step} failed with exit code {exit_code} (see {log_path})")


class SubmissionError(BenchmarkError):
    """The scheduler rejected the job or could not be reached."""
    code = "SUBMISSION"


class ResultsTableError(BenchmarkError, ValueError):
    """A results table that is not one of ours (wrong header)."""
    code = "RESULTS_TABLE"


class ContainerTimeoutError(BenchmarkError):
    """An `apptainer exec` probe did not return within the preflight timeout."""
    code = "CONTAINER_TIMEOUT"

    def __init__(self, command: str, timeout: int):
        self.command = command
        self.timeout = timeout
        super().__init__(f"'{command}' did not finish within {timeout}s; is the container hanging?")
