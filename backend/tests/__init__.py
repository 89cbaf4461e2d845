"""
Test Suite for the Virtual Herbal Garden backend

Unit tests for tokens, OTPs and hashing, and HTTP-level tests for the auth
flow and the catalog admin API.
"""

from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional


class TestDataFactory:
    """Factory for creating test data"""

    @staticmethod
    def create_user(**kwargs) -> Dict[str, Any]:
        """Signup payload"""
        default_data = {
            "fullName": "Test User",
            "email": "test@example.com",
            "role": "student",
            "password": "SecurePassword123!",
        }
        default_data.update(kwargs)
        return default_data

    @staticmethod
    def create_category(**kwargs) -> Dict[str, Any]:
        default_data = {
            "name": "Digestive Health",
            "type": "Ailment",
            "icon_url": "https://cdn.example.com/icons/digestive.png",
            "display_order": 1,
        }
        default_data.update(kwargs)
        return default_data

    @staticmethod
    def create_plant(**kwargs) -> Dict[str, Any]:
        default_data = {
            "name": "Tulsi",
            "botanical_name": "Ocimum tenuiflorum",
            "tags": ["immunity", "respiratory"],
            "status": "draft",
            "featured": False,
            "benefits": ["Relieves cough", "Reduces stress"],
            "description": "Holy basil, used widely in Ayurveda.",
        }
        default_data.update(kwargs)
        return default_data


class RecordingNotifier:
    """Stands in for the email notifier and remembers every OTP it was asked to send"""

    def __init__(self):
        self.sent: List[Dict[str, Any]] = []
        self.result = True
        self.error: Optional[Exception] = None

    def send(self, destination: str, code: str, full_name: Optional[str] = None) -> bool:
        if self.error is not None:
            raise self.error
        self.sent.append({"destination": destination, "code": code, "full_name": full_name})
        return self.result

    @property
    def last_code(self) -> str:
        return self.sent[-1]["code"]


class FakeClock:
    """Callable clock that only moves when told to"""

    def __init__(self, now: Optional[datetime] = None):
        self.now = now or datetime(2025, 1, 15, 12, 0, 0)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


def auth_header(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
