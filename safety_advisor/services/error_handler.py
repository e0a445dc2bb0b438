"""
Error handling utilities for Safety Advisor.

This module provides functionality for:
1. Tracking error occurrences by type
2. Generating user-friendly error messages
"""
from typing import Any, Dict
from datetime import datetime
from collections import defaultdict

from safety_advisor.services.config import load_yaml_config
from safety_advisor.services.errors import SafetyAdvisorError


class ErrorHandler:
    def __init__(self):
        config = load_yaml_config('error_messages.yaml')
        self.error_messages = config.get('error_messages', {})
        self.default_message = config.get('default_message', "")
        self.error_stats = defaultdict(int)
        self.recent_errors = []

    def error_type_of(self, error: BaseException) -> str:
        if isinstance(error, SafetyAdvisorError):
            return error.error_type
        return "internal_error"

    def track_error(self, error_type: str, details: str = ""):
        """Track error information"""
        error_info = {
            'error_type': error_type,
            'details': details,
            'timestamp': datetime.now().isoformat()
        }
        self.error_stats[error_type] += 1
        self.recent_errors.append(error_info)
        # Only keep the latest 100 error records
        if len(self.recent_errors) > 100:
            self.recent_errors.pop(0)

    def get_error_stats(self) -> Dict[str, Any]:
        """Get error statistics"""
        return {
            'total_errors': sum(self.error_stats.values()),
            'error_types': dict(self.error_stats),
            'recent_errors': self.recent_errors[-10:] if self.recent_errors else []
        }

    def get_user_friendly_error(self, error_type: str) -> str:
        """Generate user-friendly error message"""
        pattern = self.error_messages.get(error_type)
        if not pattern:
            return self.default_message
        return f"{pattern['description']} {pattern.get('suggestion', '')}".strip()

    def handle(self, error: BaseException) -> str:
        """Track an error and return the message to show the user."""
        error_type = self.error_type_of(error)
        self.track_error(error_type, str(error))
        return self.get_user_friendly_error(error_type)

    def reset(self):
        self.error_stats.clear()
        self.recent_errors = []


# Global error handler instance
error_handler = ErrorHandler()
