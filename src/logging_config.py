"""Logging configuration with console and rotating file handlers"""
import glob
import logging
import sys
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path

KEEP_SESSION_LOGS = 5


def setup_logging(log_file: str = "logs/patent-search.log", console_level: int = logging.INFO, file_level: int = logging.DEBUG):
    """
    Configure logging with two destinations:
    - Console: Brief logs (INFO by default) - ranking counters per query
    - File: Detailed logs (DEBUG by default) - includes top scores per query
    
    Rotation policy:
    - New log file on each server restart (timestamp-based naming)
    - Keep last 5 log files (auto-cleanup on startup)
    - Auto-rotate when file reaches 10MB
    
    Args:
        log_file: Base path to log file (relative to project root)
        console_level: Console logging level (INFO = brief)
        file_level: File logging level (DEBUG = verbose)
    
    Returns:
        Path of this session's log file
    """
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    
    # Cleanup old session logs - the new one makes KEEP_SESSION_LOGS
    log_pattern = str(log_path.parent / f"{log_path.stem}_*.log")
    existing_logs = sorted(glob.glob(log_pattern), reverse=True)  # Newest first
    for old_log in existing_logs[KEEP_SESSION_LOGS - 1:]:
        try:
            Path(old_log).unlink()
        except OSError:
            pass  # Ignore deletion errors
    
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    session_log = log_path.parent / f"{log_path.stem}_{timestamp}.log"
    
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)  # Capture everything, filter in handlers
    
    # Remove existing handlers to avoid duplicates
    root_logger.handlers.clear()
    
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(logging.Formatter('%(levelname)s: %(message)s'))
    
    file_handler = RotatingFileHandler(
        session_log,
        mode='a',
        maxBytes=10*1024*1024,  # 10MB
        backupCount=10,
        encoding='utf-8'
    )
    file_handler.setLevel(file_level)
    file_handler.setFormatter(logging.Formatter(
        '%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    ))
    
    root_logger.addHandler(console_handler)
    root_logger.addHandler(file_handler)
    
    # Suppress noisy third-party loggers in console (but keep in file)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("google.auth").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    
    logging.info(f"Logging configured: console={logging.getLevelName(console_level)}, file={session_log} ({logging.getLevelName(file_level)})")
    
    return session_log
