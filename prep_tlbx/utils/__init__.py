from .logging_config import setup_logging
from .validation import check_flag, check_freq_cut, check_k, check_unique_cut


__all__ = ["check_flag", "check_freq_cut", "check_k", "check_unique_cut", "setup_logging"]
