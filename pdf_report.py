import argparse
import logging
from datetime import date, datetime
from pathlib import Path
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import (
    SimpleDocTemplate,
    Paragraph,
    Spacer,
    Table,
    TableStyle,
    Image,
    PageBreak,
)

from validator import validate_csv
from engine import evaluate
from charts import generate_pass_fail_bar, generate_rule_failures_bar

logger = logging.getLogger(__name__)

RESULTS_CSV = "results.csv"
PASS_FAIL_PNG = "pass_fail.png"
RULE_FAILURES_PNG = "rule_failures.png"
REPORT_PDF = "report.pdf"

MAX_DETAIL_ROWS = 200


def _status_color(status: str):
    return colors.green if status == "Pass" else colors.red


def build_compliance_outputs(
    csv_path,
    out_dir,
    today: date | None = None,
    report_title: str = "Driver Compliance Report",
    company_name: str | None = None,
):
    """Run the whole pipeline for one upload and write every artifact to ``out_dir``."""
    out = Path(out_dir)
    out.mkdir(parents=True, exist_ok=True)

    # 1) Load + evaluate
    df = validate_csv(csv_path)
    results_df, summary = evaluate(df, today)

    # 2) Annotated table
    results_df.to_csv(out / RESULTS_CSV, index=False)

    # 3) Charts (saved as images)
    chart_paths = {
        "pass_fail": str(out / PASS_FAIL_PNG),
        "rule_failures": str(out / RULE_FAILURES_PNG),
    }
    generate_pass_fail_bar(summary, chart_paths["pass_fail"])
    generate_rule_failures_bar(summary, chart_paths["rule_failures"])

    # 4) PDF
    build_pdf_report(
        results_df,
        summary,
        chart_paths,
        str(out / REPORT_PDF),
        report_title=report_title,
        company_name=company_name,
    )
    logger.info("Wrote compliance outputs to %s", out)
    return results_df, summary


def build_pdf_report(
    results_df,
    summary,
    chart_paths,
    out_pdf_path: str,
    report_title: str = "Driver Compliance Report",
    company_name: str | None = None,
):
    doc = SimpleDocTemplate(
        out_pdf_path,
        pagesize=A4,
        rightMargin=18 * mm,
        leftMargin=18 * mm,
        topMargin=16 * mm,
        bottomMargin=16 * mm,
        title=report_title,
    )

    styles = getSampleStyleSheet()
    story = []

    # ---------- Page 1: Overview ----------
    story.append(Paragraph(f"<b>{escape(report_title)}</b>", styles["Title"]))

    if company_name:
        story.append(Spacer(1, 4))
        story.append(Paragraph(escape(company_name), styles["Heading3"]))

    story.append(Spacer(1, 8))

    now_str = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    overview_data = [
        ["Generated", now_str],
        ["Checked As Of", summary["as_of"]],
        ["Total Drivers", str(summary["total"])],
        ["Passed Drivers", str(summary["pass_count"])],
        ["Failed Drivers", str(summary["fail_count"])],
        ["Pass Rate", f'{summary["pass_rate"]:.2f}%'],
    ]

    overview_table = Table(overview_data, colWidths=[55 * mm, 110 * mm], hAlign="LEFT")
    overview_style = TableStyle(
        [
            ("FONTNAME", (0, 0), (-1, -1), "Helvetica"),
            ("FONTSIZE", (0, 0), (-1, -1), 10),
            ("BACKGROUND", (0, 0), (-1, 0), colors.whitesmoke),
            ("GRID", (0, 0), (-1, -1), 0.5, colors.lightgrey),
            ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
            ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.HexColor("#FAFAFA")]),
        ]
    )
    if summary["fail_count"]:
        overview_style.add("TEXTCOLOR", (1, 4), (1, 4), colors.red)
        overview_style.add("FONTNAME", (1, 4), (1, 4), "Helvetica-Bold")
    overview_table.setStyle(overview_style)
    story.append(overview_table)

    story.append(Spacer(1, 14))
    story.append(Paragraph("Failures by Rule", styles["Heading2"]))
    story.append(Spacer(1, 6))

    rule_data = [["Rule", "Drivers Failing"]]
    rule_data += [[msg.rstrip(";"), str(n)] for msg, n in summary["rule_failures"].items()]
    rule_table = Table(rule_data, colWidths=[125 * mm, 40 * mm], hAlign="LEFT")
    rule_table.setStyle(
        TableStyle(
            [
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                ("FONTSIZE", (0, 0), (-1, -1), 9),
                ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#F0F0F0")),
                ("GRID", (0, 0), (-1, -1), 0.25, colors.lightgrey),
                ("ALIGN", (1, 1), (1, -1), "RIGHT"),
            ]
        )
    )
    story.append(rule_table)

    story.append(Spacer(1, 10))
    story.append(
        Paragraph(
            "Each driver must be older than 21, hold an unexpired driver's license, DOT card "
            "and PUC fingerprints, have a drug test within the last year, and have a background "
            "check, MVR and training within the last 6 months. Missing or unreadable dates fail "
            "the rule that uses them.",
            styles["BodyText"],
        )
    )

    story.append(PageBreak())

    # ---------- Page 2: Charts ----------
    story.append(Paragraph("Charts", styles["Heading2"]))
    story.append(Spacer(1, 8))

    pass_fail = chart_paths.get("pass_fail")
    if pass_fail and Path(pass_fail).exists():
        story.append(Image(pass_fail, width=130 * mm, height=97 * mm))
        story.append(Spacer(1, 10))

    rule_failures = chart_paths.get("rule_failures")
    if rule_failures and Path(rule_failures).exists():
        story.append(Image(rule_failures, width=170 * mm, height=85 * mm))

    story.append(PageBreak())

    # ---------- Page 3: Detailed Results ----------
    story.append(Paragraph("Detailed Results", styles["Heading2"]))
    story.append(Spacer(1, 8))

    cell = styles["BodyText"].clone("cell", fontSize=8, leading=10)
    view_df = results_df.head(MAX_DETAIL_ROWS)

    table_data = [["Driver ID", "Name", "Status", "Result"]]
    for _, r in view_df.iterrows():
        table_data.append(
            [
                str(r["DriverId"]),
                Paragraph(escape(str(r["driverName"])), cell),
                str(r["Is_Pass"]),
                Paragraph(escape(str(r["Result"])), cell),
            ]
        )

    detail_table = Table(
        table_data,
        colWidths=[22 * mm, 40 * mm, 16 * mm, 96 * mm],
        repeatRows=1,
        hAlign="LEFT",
    )
    detail_style = TableStyle(
        [
            ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
            ("FONTSIZE", (0, 0), (-1, 0), 9),
            ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#F0F0F0")),
            ("GRID", (0, 0), (-1, -1), 0.25, colors.lightgrey),
            ("FONTSIZE", (0, 1), (-1, -1), 8),
            ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ]
    )
    for i in range(1, len(table_data)):
        status = table_data[i][2]
        detail_style.add("TEXTCOLOR", (2, i), (2, i), _status_color(status))
        if status == "Fail":
            detail_style.add("FONTNAME", (2, i), (2, i), "Helvetica-Bold")
    detail_table.setStyle(detail_style)
    story.append(detail_table)

    story.append(Spacer(1, 10))
    if len(results_df) > MAX_DETAIL_ROWS:
        story.append(
            Paragraph(
                f"Note: Showing first {MAX_DETAIL_ROWS} drivers only. "
                "Download the results CSV for the full list.",
                styles["Italic"],
            )
        )

    story.append(Spacer(1, 12))
    story.append(Paragraph(f"Generated by Driver Compliance Checker • {now_str}", styles["Normal"]))

    doc.build(story)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Check a driver CSV and write the compliance report.")
    parser.add_argument("csv_path")
    parser.add_argument("-o", "--out-dir", default="output")
    parser.add_argument("--as-of", type=date.fromisoformat, default=None, help="Reference date, YYYY-MM-DD")
    parser.add_argument("--title", default="Driver Compliance Report")
    parser.add_argument("--company", default=None)
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    _, summary = build_compliance_outputs(
        args.csv_path,
        args.out_dir,
        today=args.as_of,
        report_title=args.title,
        company_name=args.company,
    )
    print(
        f"{summary['total']} drivers: {summary['pass_count']} passed, {summary['fail_count']} failed. "
        f"Results in {args.out_dir}/"
    )


if __name__ == "__main__":
    main()
