import base64
from concurrent.futures import ThreadPoolExecutor

from backend.engine.chart import generate_graph
from backend.engine.dashboard import build_dashboard
from backend.engine.fetch import StudentAttendance


def test_dashboard_header(student_attendance):
    dashboard = build_dashboard(student_attendance, 75)

    assert dashboard["threshold"] == 75
    assert dashboard["student"] == {
        "full_name": "Asha Verma",
        "registration_number": "2100290100042",
        "branch": "CSE",
        "section": "B",
        "degree": "B.Tech",
        "semester": "6",
    }


def test_dashboard_components_carry_projection(student_attendance):
    dashboard = build_dashboard(student_attendance, 75)

    compiler, networks = dashboard["courses"]
    lecture = compiler["components"][0]
    assert lecture["percentage_label"] == "80.00%"
    assert lecture["meets_threshold"] is True
    assert lecture["projection"]["status"] == "safe"
    assert lecture["projection"]["message"] == "You can miss 6 more classes"

    networks_lecture = networks["components"][0]
    assert networks_lecture["meets_threshold"] is False
    assert networks_lecture["projection"]["message"] == "Need to attend next 20 classes"


def test_dashboard_component_without_periods_is_undetermined(student_attendance):
    dashboard = build_dashboard(student_attendance, 75)

    practical = dashboard["courses"][0]["components"][1]
    assert practical["total"] == 0
    assert practical["percentage"] == 0
    assert practical["percentage_label"] == "0%"
    assert practical["meets_threshold"] is False
    assert practical["projection"]["status"] == "undetermined"


def test_generate_graph_returns_png(student_attendance):
    graph = generate_graph(build_dashboard(student_attendance, 75), 75)

    assert base64.b64decode(graph).startswith(b"\x89PNG")


def test_missing_portal_percentage_uses_exact_threshold_check():
    attendance = StudentAttendance.model_validate(
        {
            "attendanceCourseComponentInfoList": [
                {
                    "courseCode": "KCS602",
                    "attendanceCourseComponentNameInfoList": [
                        {
                            "componentName": "Lecture",
                            "numberOfPresent": 29999,
                            "numberOfPeriods": 40000,
                        }
                    ],
                }
            ]
        }
    )

    component = build_dashboard(attendance, 75)["courses"][0]["components"][0]

    # 74.9975% rounds to 75.0 but is still below the threshold
    assert component["percentage"] == 75.0
    assert component["meets_threshold"] is False
    assert component["projection"]["status"] == "warning"


def test_generate_graph_is_stable_across_threads(student_attendance):
    dashboard = build_dashboard(student_attendance, 75)
    expected = generate_graph(dashboard, 75)

    with ThreadPoolExecutor(max_workers=6) as pool:
        graphs = list(pool.map(lambda _: generate_graph(dashboard, 75), range(24)))

    assert all(graph == expected for graph in graphs)
