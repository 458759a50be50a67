from typing import Any, Dict, List

from backend.engine.attendance import AttendanceCalculator
from backend.engine.fetch import ComponentAttendance, StudentAttendance


def _format_component(component: ComponentAttendance, threshold: int) -> Dict[str, Any]:
    attended = component.number_of_present
    total = component.number_of_periods

    projection = AttendanceCalculator.project(attended, total, threshold)

    # Prefer the portal's own percentage; fall back to ours when it is missing.
    # The fallback flag comes from exact counts, not the rounded percentage.
    percentage = component.present_percentage
    if percentage is None:
        percentage = projection.percentage or 0
        meets_threshold = total > 0 and AttendanceCalculator.meets_threshold(
            total, attended, threshold
        )
    else:
        meets_threshold = percentage >= threshold

    return {
        "component": component.component_name,
        "attended": attended,
        "total": total,
        "percentage": percentage,
        "percentage_label": component.present_percentage_with or f"{percentage}%",
        "meets_threshold": meets_threshold,
        "projection": projection.to_dict(),
    }


def build_dashboard(attendance: StudentAttendance, threshold: int) -> Dict[str, Any]:
    """Flatten a portal attendance snapshot into the dashboard view."""
    courses: List[Dict[str, Any]] = []

    for course in attendance.courses:
        courses.append(
            {
                "course_name": course.course_name,
                "course_code": course.course_code,
                "components": [
                    _format_component(component, threshold)
                    for component in course.components
                ],
            }
        )

    return {
        "student": {
            "full_name": attendance.full_name,
            "registration_number": attendance.registration_number,
            "branch": attendance.branch_short_name,
            "section": attendance.section_name,
            "degree": attendance.degree_name,
            "semester": attendance.semester_name,
        },
        "threshold": threshold,
        "courses": courses,
    }
