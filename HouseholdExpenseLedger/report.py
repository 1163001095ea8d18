"""
Report Module

Builds the settle-up report of a household as HTML and converts it to PDF
with xhtml2pdf.

Functions:
    build_report_html: Render balances and settlements as an HTML page.
    render_settlement_report: Render the same page as PDF bytes.
"""

import io
from datetime import date
from html import escape

from xhtml2pdf import pisa

from utils import format_currency


def build_report_html(household_id: str, balances: dict, settlements: list[dict]) -> str:
    """
    Build the HTML of a settle-up report.

    Args:
        household_id: The household the report is for.
        balances: dict of user -> net balance (as from BalanceMap.to_dict()).
        settlements: Output of optimize_settlements().
    """
    balance_rows = ''.join(
        f"<tr><td>{escape(str(user))}</td><td>{format_currency(amount)}</td></tr>"
        for user, amount in sorted(balances.items(), key=lambda item: item[1], reverse=True)
    ) or '<tr><td colspan="2">No expenses recorded</td></tr>'

    settlement_lines = '<br>'.join(
        f"<strong>{escape(str(s['from']))}</strong> pays "
        f"<strong>{escape(str(s['to']))}</strong> {format_currency(s['amount'])}"
        for s in settlements
    ) or '<p>Everyone is settled up</p>'

    return f"""
    <!DOCTYPE html>
    <html>
    <head>
        <meta charset="UTF-8">
        <style>
            body {{ font-family: Arial, sans-serif; padding: 20px; color: #333; }}
            h1 {{ color: #667eea; border-bottom: 2px solid #667eea; padding-bottom: 10px; }}
            h2 {{ color: #444; margin-top: 25px; }}
            table {{ width: 100%; border-collapse: collapse; margin: 15px 0; }}
            th, td {{ border: 1px solid #ddd; padding: 10px; text-align: left; }}
            th {{ background: #667eea; color: white; }}
            .footer {{ margin-top: 30px; text-align: center; color: #888; font-size: 12px; }}
        </style>
    </head>
    <body>
        <h1>Household {escape(household_id)}</h1>
        <p><strong>Generated:</strong> {date.today().strftime('%B %d, %Y')}</p>

        <h2>Net Balances</h2>
        <table>
            <tr><th>Member</th><th>Net</th></tr>
            {balance_rows}
        </table>

        <h2>Who Pays Whom</h2>
        {settlement_lines}

        <div class="footer">
            <p>Generated by Household Expense Ledger</p>
        </div>
    </body>
    </html>
    """


def render_settlement_report(household_id: str, balances: dict, settlements: list[dict]) -> bytes:
    """
    Render the settle-up report as PDF.

    Raises:
        RuntimeError: If xhtml2pdf reports a conversion error.
    """
    html_content = build_report_html(household_id, balances, settlements)

    pdf_buffer = io.BytesIO()
    status = pisa.CreatePDF(io.StringIO(html_content), dest=pdf_buffer)
    if status.err:
        raise RuntimeError(f"PDF generation failed with {status.err} error(s)")

    return pdf_buffer.getvalue()
