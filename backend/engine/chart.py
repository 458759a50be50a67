import base64
from io import BytesIO
from typing import Any, Dict

import numpy as np
from matplotlib.figure import Figure

from backend.engine.attendance import AttendanceCalculator


def generate_graph(dashboard: Dict[str, Any], threshold: int) -> str:
    # A standalone Figure keeps each call off pyplot's shared state, so
    # charts can be rendered from executor threads.
    labels, attended, missed, threshold_marks = [], [], [], []

    for course in dashboard["courses"]:
        for component in course["components"]:
            total_classes = component["total"]
            attended_classes = component["attended"]
            if total_classes <= 0:
                continue
            labels.append(
                f"{course['course_code']} {component['component']}\n"
                f"{attended_classes}/{total_classes}"
            )
            attended.append(attended_classes)
            missed.append(max(total_classes - attended_classes, 0))
            threshold_marks.append(
                AttendanceCalculator.calculate_threshold_mark(total_classes, threshold)
            )

    fig = Figure(figsize=(12, 8))
    ax = fig.subplots()
    x = np.arange(len(labels))
    ax.bar(x, attended, color="seagreen", label="Attended")
    ax.bar(x, missed, bottom=attended, color="firebrick", label="Missed")

    for i in range(len(labels)):
        ax.text(x[i], threshold_marks[i] + 1, f"{threshold}%: {threshold_marks[i]}", ha="center", fontsize=9)

    ax.set_xticks(x)
    ax.set_xticklabels(labels, rotation=45, ha="right")
    ax.set_xlabel("Course components")
    ax.set_ylabel("Classes")
    ax.set_title(f"Attendance ({threshold}% Threshold)")
    ax.legend()
    fig.tight_layout()

    buf = BytesIO()
    fig.savefig(buf, format="png")
    buf.seek(0)

    return base64.b64encode(buf.getvalue()).decode("utf-8")
