"""Static HTML report for the click-time analysis."""
from django.template.loader import render_to_string
from django.utils import timezone

REPORT_TEMPLATE = "export/analysis_report.html"

POSITION_TEST_LABELS = [
    ("first_vs_last", "First vs. Last"),
    ("first_vs_middle", "First vs. Middle"),
    ("middle_vs_last", "Middle vs. Last"),
]


def _significance(test: dict) -> str:
    return "significant" if test["significant"] else "not significant"


def build_conclusions(analysis: dict) -> list[str]:
    paired = analysis["color_vs_monochrome"]
    verdict = "rejects" if paired["significant"] else "supports"
    difference = "a significant" if paired["significant"] else "no significant"
    colour_line = (
        f"Color vs. Monochrome: the analysis {verdict} the hypothesis that colour has no relation to "
        f"response time. The paired t-test showed {difference} difference between conditions "
        f"(t({paired['df']}) = {paired['t_stat']:.2f}, p = {paired['p_value']:.4f})."
    )

    first_vs_last = analysis["position_tests"]["first_vs_last"]
    faster = first_vs_last["difference"] < 0
    position_line = (
        f"Click position: first clicks were {abs(first_vs_last['difference']):.2f} ms "
        f"{'faster' if faster else 'slower'} than last clicks, which "
        f"{'supports' if faster else 'does not support'} the hypothesis that first clicks are faster "
        f"(p = {first_vs_last['p_value']:.4f}, {_significance(first_vs_last)})."
    )
    return [colour_line, position_line]


def build_chart_data(analysis: dict) -> dict:
    positions = analysis["positions"]
    return {
        "conditions": {
            "labels": ["Color", "Monochrome"],
            "means": [analysis["color"]["mean"], analysis["monochrome"]["mean"]],
            "sds": [analysis["color"]["sd"], analysis["monochrome"]["sd"]],
        },
        "positions": {
            "labels": ["First", "Middle", "Last"],
            "means": [positions[key]["mean"] for key in ("first", "middle", "last")],
            "sds": [positions[key]["sd"] for key in ("first", "middle", "last")],
        },
    }


def render_analysis_report(analysis: dict, generated_at=None) -> str:
    position_tests = [
        {"label": label, "significance": _significance(analysis["position_tests"][key]), **analysis["position_tests"][key]}
        for key, label in POSITION_TEST_LABELS
    ]
    context = {
        "analysis": analysis,
        "paired": analysis["color_vs_monochrome"],
        "position_tests": position_tests,
        "conclusions": build_conclusions(analysis),
        "chart_data": build_chart_data(analysis),
        "generated_at": generated_at or timezone.now(),
    }
    return render_to_string(REPORT_TEMPLATE, context)
