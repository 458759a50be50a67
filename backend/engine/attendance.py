from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, Optional

DEFAULT_THRESHOLD = 75


class InvalidInputError(ValueError):
    """Raised when attendance counts cannot describe a real course component."""

    pass


class ProjectionStatus(str, Enum):
    SAFE = "safe"
    WARNING = "warning"
    UNDETERMINED = "undetermined"


@dataclass(frozen=True)
class AttendanceProjection:
    status: ProjectionStatus
    message: str
    percentage: Optional[float] = None
    can_miss: int = 0
    need_to_attend: int = 0

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status.value
        return data


def _classes(count: int) -> str:
    return "class" if count == 1 else "classes"


class AttendanceCalculator:
    # All arithmetic is done on integers scaled by 100 so that boundary
    # ratios such as 75/100 compare exactly.

    @staticmethod
    def meets_threshold(total_classes, attended_classes, threshold=DEFAULT_THRESHOLD):
        return attended_classes * 100 >= threshold * total_classes

    @staticmethod
    def calculate_can_miss(total_classes, attended_classes, threshold=DEFAULT_THRESHOLD):
        """
        Calculate how many further absences keep attendance at or above the threshold.

        floor((attended - r * total) / r) with r = threshold / 100.
        """
        return max(0, (attended_classes * 100 - threshold * total_classes) // threshold)

    @staticmethod
    def calculate_need_to_attend(total_classes, attended_classes, threshold=DEFAULT_THRESHOLD):
        """
        Calculate how many consecutive classes must be attended to reach the threshold.

        ceil((r * total - attended) / (1 - r)) with r = threshold / 100.
        """
        deficit = threshold * total_classes - attended_classes * 100
        return max(0, -(-deficit // (100 - threshold)))

    @staticmethod
    def calculate_threshold_mark(total_classes, threshold=DEFAULT_THRESHOLD):
        """
        Calculate the minimum number of attended classes needed to meet the threshold.
        """
        return -(-threshold * total_classes // 100)

    @classmethod
    def project(
        cls, present: int, total: int, threshold: int = DEFAULT_THRESHOLD
    ) -> AttendanceProjection:
        if present < 0 or total < 0:
            raise InvalidInputError(
                f"Attendance counts must be non-negative, got {present}/{total}"
            )
        if not 0 < threshold < 100:
            raise InvalidInputError(
                f"Threshold must be between 0 and 100 exclusive, got {threshold}"
            )

        if total == 0:
            return AttendanceProjection(
                status=ProjectionStatus.UNDETERMINED,
                message="No classes held yet",
            )

        percentage = round(present / total * 100, 2)

        if cls.meets_threshold(total, present, threshold):
            can_miss = cls.calculate_can_miss(total, present, threshold)
            if can_miss > 0:
                message = f"You can miss {can_miss} more {_classes(can_miss)}"
            else:
                message = "Try not to miss any more classes"
            return AttendanceProjection(
                status=ProjectionStatus.SAFE,
                message=message,
                percentage=percentage,
                can_miss=can_miss,
            )

        need_to_attend = cls.calculate_need_to_attend(total, present, threshold)
        return AttendanceProjection(
            status=ProjectionStatus.WARNING,
            message=f"Need to attend next {need_to_attend} {_classes(need_to_attend)}",
            percentage=percentage,
            need_to_attend=need_to_attend,
        )


def project(present: int, total: int, threshold: int = DEFAULT_THRESHOLD) -> AttendanceProjection:
    """Project how many classes can be missed or must be attended for a component."""
    return AttendanceCalculator.project(present, total, threshold)
