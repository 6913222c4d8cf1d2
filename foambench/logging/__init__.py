from .bench_logger import BenchLogger, attach_log_file, detach_log_file, set_verbose

__all__ = ['BenchLogger', 'attach_log_file', 'detach_log_file', 'set_verbose']
