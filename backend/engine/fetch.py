from dataclasses import dataclass
from typing import List, Optional

import requests
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from backend.core import settings
from backend.engine.stream import app_logger, mask_username


class PortalError(Exception):
    """Base class for failures talking to the CyberVidya portal."""

    pass


class AuthenticationError(PortalError):
    """Raised when the portal rejects the supplied credentials."""

    pass


class SessionExpiredError(PortalError):
    """Raised when a stored token can no longer fetch attendance data."""

    pass


class _PortalModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ComponentAttendance(_PortalModel):
    component_name: str = Field("", alias="componentName")
    number_of_present: int = Field(0, alias="numberOfPresent")
    number_of_periods: int = Field(0, alias="numberOfPeriods")
    present_percentage: Optional[float] = Field(None, alias="presentPercentage")
    present_percentage_with: Optional[str] = Field(None, alias="presentPercentageWith")

    @field_validator("number_of_present", "number_of_periods", mode="before")
    @classmethod
    def _missing_count_is_zero(cls, value):
        return 0 if value is None else value


class CourseAttendance(_PortalModel):
    course_name: str = Field("", alias="courseName")
    course_code: str = Field("", alias="courseCode")
    components: List[ComponentAttendance] = Field(
        default_factory=list, alias="attendanceCourseComponentNameInfoList"
    )


class StudentAttendance(_PortalModel):
    full_name: str = Field("", alias="fullName")
    registration_number: str = Field("", alias="registrationNumber")
    branch_short_name: str = Field("", alias="branchShortName")
    section_name: str = Field("", alias="sectionName")
    degree_name: str = Field("", alias="degreeName")
    semester_name: str = Field("", alias="semesterName")
    courses: List[CourseAttendance] = Field(
        default_factory=list, alias="attendanceCourseComponentInfoList"
    )


@dataclass(frozen=True)
class PortalSession:
    """Bearer token issued by the portal for one signed-in student."""

    token: str

    @property
    def authorization_header(self) -> str:
        return f"GlobalEducation {self.token}"


class CyberVidyaClient:
    LOGIN_PATH = "/auth/login"
    ATTENDANCE_PATH = "/attendance/course/component/student"

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[int] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = (base_url or settings.PORTAL_BASE_URL).rstrip("/")
        self.timeout = timeout or settings.REQUEST_TIMEOUT_SECONDS
        self.session = session or requests.Session()

    def login(self, username: str, password: str) -> PortalSession:
        app_logger.info(f"Initiating authentication for user: {mask_username(username)}")

        try:
            response = self.session.post(
                f"{self.base_url}{self.LOGIN_PATH}",
                json={"userName": username, "password": password},
                timeout=self.timeout,
            )
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as e:
            raise AuthenticationError(f"Network error during authentication: {e}")
        except ValueError as e:
            raise AuthenticationError(f"Invalid login response: {e}")

        token = ((payload or {}).get("data") or {}).get("token")
        if not token:
            raise AuthenticationError("Authentication failed: no token in response")

        app_logger.info("Authentication successful")
        return PortalSession(token=token)

    def fetch_attendance(self, portal_session: PortalSession) -> StudentAttendance:
        app_logger.info("Fetching attendance data")

        try:
            response = self.session.get(
                f"{self.base_url}{self.ATTENDANCE_PATH}",
                headers={"Authorization": portal_session.authorization_header},
                timeout=self.timeout,
            )
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as e:
            raise SessionExpiredError(f"Failed to fetch attendance data: {e}")
        except ValueError as e:
            raise SessionExpiredError(f"Invalid attendance response: {e}")

        data = (payload or {}).get("data")
        if not isinstance(data, dict):
            raise SessionExpiredError("Attendance response carried no data")

        try:
            attendance = StudentAttendance.model_validate(data)
        except ValidationError as e:
            raise SessionExpiredError(f"Unexpected attendance payload: {e}")

        app_logger.info(f"Retrieved attendance for {len(attendance.courses)} courses")
        return attendance

    def close(self) -> None:
        self.session.close()


def fetch_student_attendance(username: str, password: str) -> StudentAttendance:
    """Convenience function for external usage"""
    client = CyberVidyaClient()

    try:
        portal_session = client.login(username, password)
        return client.fetch_attendance(portal_session)
    finally:
        client.close()
