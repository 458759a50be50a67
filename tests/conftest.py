from typing import Any, Dict, Optional

import pytest

from backend.engine.fetch import (
    AuthenticationError,
    PortalSession,
    SessionExpiredError,
    StudentAttendance,
)


@pytest.fixture
def attendance_payload() -> Dict[str, Any]:
    return {
        "fullName": "Asha Verma",
        "registrationNumber": "2100290100042",
        "branchShortName": "CSE",
        "sectionName": "B",
        "degreeName": "B.Tech",
        "semesterName": "6",
        "attendanceCourseComponentInfoList": [
            {
                "courseName": "Compiler Design",
                "courseCode": "KCS601",
                "attendanceCourseComponentNameInfoList": [
                    {
                        "componentName": "Lecture",
                        "numberOfPresent": 80,
                        "numberOfPeriods": 100,
                        "presentPercentage": 80.0,
                        "presentPercentageWith": "80.00%",
                    },
                    {
                        "componentName": "Practical",
                        "numberOfPresent": 0,
                        "numberOfPeriods": 0,
                        "presentPercentage": None,
                        "presentPercentageWith": None,
                    },
                ],
            },
            {
                "courseName": "Computer Networks",
                "courseCode": "KCS603",
                "attendanceCourseComponentNameInfoList": [
                    {
                        "componentName": "Lecture",
                        "numberOfPresent": 70,
                        "numberOfPeriods": 100,
                        "presentPercentage": 70.0,
                        "presentPercentageWith": "70.00%",
                    }
                ],
            },
        ],
    }


@pytest.fixture
def student_attendance(attendance_payload) -> StudentAttendance:
    return StudentAttendance.model_validate(attendance_payload)


class FakePortalClient:
    """Stands in for CyberVidyaClient without touching the network."""

    def __init__(
        self,
        attendance: Optional[StudentAttendance] = None,
        valid_password: str = "secret",
        valid_token: str = "tok-123",
    ) -> None:
        self.attendance = attendance
        self.valid_password = valid_password
        self.valid_token = valid_token
        self.closed = False
        self.login_calls = 0
        self.fetch_calls = 0

    def login(self, username: str, password: str) -> PortalSession:
        self.login_calls += 1
        if password != self.valid_password:
            raise AuthenticationError("bad credentials")
        return PortalSession(token=self.valid_token)

    def fetch_attendance(self, portal_session: PortalSession) -> StudentAttendance:
        self.fetch_calls += 1
        if portal_session.token != self.valid_token or self.attendance is None:
            raise SessionExpiredError("token rejected")
        return self.attendance

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_client(student_attendance) -> FakePortalClient:
    return FakePortalClient(attendance=student_attendance)
