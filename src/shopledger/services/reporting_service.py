from __future__ import annotations

from collections import Counter, defaultdict
from dataclasses import dataclass, field

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.table import Table, TableStyleInfo

from shopledger.domain.errors import ValidationError
from shopledger.domain.models import Purchase


@dataclass
class ProductReport:
    id: str
    name: str
    quantity: int = 0
    revenue: float = 0.0
    paid: float = 0.0
    due: float = 0.0
    cogs: float = 0.0
    profit: float = 0.0


@dataclass
class ServiceReport:
    id: str
    name: str
    quantity: int = 0
    revenue: float = 0.0
    paid: float = 0.0
    due: float = 0.0


@dataclass(frozen=True)
class SalesStats:
    num_sales: int
    total_amount: float
    paid_amount: float
    due_amount: float


@dataclass(frozen=True)
class PeriodReport:
    start: str
    end: str
    total_revenue: float
    total_paid: float
    total_due: float
    total_expenses: float
    total_cogs: float
    total_profit: float
    stock_value: float
    product_reports: list[ProductReport] = field(default_factory=list)
    service_reports: list[ServiceReport] = field(default_factory=list)
    utility_expenses: list[Purchase] = field(default_factory=list)


def _in_window(d: str, start_iso: str, end_iso: str) -> bool:
    return start_iso <= d[:10] <= end_iso


class ReportingService:
    def __init__(self, store):
        self.store = store

    def _check_window(self, start_iso: str, end_iso: str) -> None:
        if not start_iso or not end_iso or start_iso > end_iso:
            raise ValidationError("Report window must have a start date on or before its end date.")

    def average_unit_costs(self) -> dict[str, float]:
        """Average purchase cost per product over every Inventory purchase ever made."""
        totals: dict[str, list[float]] = defaultdict(lambda: [0.0, 0])
        for p in self.store.purchases:
            if not p.is_inventory or not p.product_id or not p.quantity:
                continue
            totals[p.product_id][0] += p.amount
            totals[p.product_id][1] += p.quantity
        return {pid: cost / qty for pid, (cost, qty) in totals.items() if qty > 0}

    def period_report(self, start_iso: str, end_iso: str) -> PeriodReport:
        self._check_window(start_iso, end_iso)
        sales = [s for s in self.store.sales if _in_window(s.date, start_iso, end_iso)]
        purchases = [p for p in self.store.purchases if _in_window(p.date, start_iso, end_iso)]
        products = {p.id: p for p in self.store.inventory}
        avg_cost = self.average_unit_costs()

        total_revenue = 0.0
        total_paid = 0.0
        total_cogs = 0.0
        product_stats: dict[str, ProductReport] = {}
        service_stats: dict[str, ServiceReport] = {}

        for sale in sales:
            total_revenue += sale.amount
            total_paid += sale.paid_amount
            paid_ratio = sale.paid_amount / sale.amount if sale.amount > 0 else 0.0

            for it in sale.items:
                prod = products.get(it.product_id)
                name = prod.name if prod else "Unknown"
                revenue = it.line_total
                paid = revenue * paid_ratio

                if prod is not None and prod.is_service:
                    row = service_stats.setdefault(it.product_id, ServiceReport(id=it.product_id, name=name))
                else:
                    cogs = avg_cost.get(it.product_id, 0.0) * it.quantity
                    total_cogs += cogs
                    row = product_stats.setdefault(it.product_id, ProductReport(id=it.product_id, name=name))
                    row.cogs += cogs
                    row.profit += revenue - cogs
                row.quantity += it.quantity
                row.revenue += revenue
                row.paid += paid
                row.due += revenue - paid

        utility = [p for p in purchases if not p.is_inventory]
        total_utility = sum(p.amount for p in utility)
        stock_value = sum(
            avg_cost.get(p.id, 0.0) * p.stock for p in self.store.inventory if p.stock
        )

        return PeriodReport(
            start=start_iso,
            end=end_iso,
            total_revenue=total_revenue,
            total_paid=total_paid,
            total_due=total_revenue - total_paid,
            total_expenses=sum(p.amount for p in purchases),
            total_cogs=total_cogs,
            total_profit=total_revenue - total_cogs - total_utility,
            stock_value=stock_value,
            product_reports=sorted(product_stats.values(), key=lambda r: r.revenue, reverse=True),
            service_reports=sorted(service_stats.values(), key=lambda r: r.revenue, reverse=True),
            utility_expenses=sorted(utility, key=lambda p: p.date, reverse=True),
        )

    def sales_stats(self, start_iso: str, end_iso: str) -> SalesStats:
        self._check_window(start_iso, end_iso)
        sales = [s for s in self.store.sales if _in_window(s.date, start_iso, end_iso)]
        total = sum(s.amount for s in sales)
        paid = sum(s.paid_amount for s in sales)
        return SalesStats(num_sales=len(sales), total_amount=total, paid_amount=paid, due_amount=total - paid)

    def monthly_sales_totals(self, months: int = 6) -> list[tuple[str, float]]:
        totals: dict[str, float] = defaultdict(float)
        for s in self.store.sales:
            totals[s.date[:7]] += s.amount
        recent = sorted(totals.items(), reverse=True)[: int(months)]
        return list(reversed(recent))

    def top_selling_products(self, limit: int = 3) -> list[tuple[str, str, int]]:
        names = {p.id: p.name for p in self.store.inventory}
        qty: Counter[str] = Counter()
        for s in self.store.sales:
            for it in s.items:
                qty[it.product_id] += it.quantity
        return [(pid, names.get(pid, "Unknown"), int(q)) for pid, q in qty.most_common(int(limit))]

    def export_report_excel(self, path: str, start_iso: str, end_iso: str) -> None:
        report = self.period_report(start_iso, end_iso)
        wb = Workbook()

        def money(cell):
            cell.number_format = "#,##0.00"

        def bold_row(ws, r):
            for c in ws[r]:
                c.font = Font(bold=True)

        def set_widths(ws, widths: dict[str, int]):
            for col, w in widths.items():
                ws.column_dimensions[col].width = w

        def add_table(ws, name: str, start_row: int, start_col: int, end_row: int, end_col: int):
            ref = f"{get_column_letter(start_col)}{start_row}:{get_column_letter(end_col)}{end_row}"
            tab = Table(displayName=name, ref=ref)
            tab.tableStyleInfo = TableStyleInfo(
                name="TableStyleMedium9",
                showRowStripes=True,
                showColumnStripes=False,
            )
            ws.add_table(tab)

        # -------- 1) Summary --------
        ws = wb.active
        ws.title = "Summary"
        ws["A1"] = f"{self.store.shop_info.name} - Report"
        ws["A1"].font = Font(bold=True, size=14)

        ws["A3"] = "Window"
        ws["B3"] = f"{report.start}  ->  {report.end}"

        rows = [
            ("Total Sell & Service", report.total_revenue),
            ("Paid Amount", report.total_paid),
            ("Due Amount", report.total_due),
            ("Total Profit", report.total_profit),
            ("Total Expenses", report.total_expenses),
            ("Stock Value", report.stock_value),
        ]
        start_row = 5
        for i, (label, val) in enumerate(rows):
            r = start_row + i
            ws[f"A{r}"] = label
            ws[f"B{r}"] = float(val)
            money(ws[f"B{r}"])
        set_widths(ws, {"A": 28, "B": 34})

        # -------- 2) Products --------
        ws2 = wb.create_sheet("Products")
        ws2.append(["Product ID", "Name", "Qty", "Revenue", "Paid", "Due", "COGS", "Profit"])
        bold_row(ws2, 1)
        for out_row, r in enumerate(report.product_reports, start=2):
            ws2.append([r.id, r.name, int(r.quantity), r.revenue, r.paid, r.due, r.cogs, r.profit])
            for col in "DEFGH":
                money(ws2[f"{col}{out_row}"])
        ws2.freeze_panes = "A2"
        set_widths(ws2, {"A": 12, "B": 34, "C": 6, "D": 14, "E": 14, "F": 14, "G": 14, "H": 14})
        if ws2.max_row >= 2:
            add_table(ws2, "ProductsDetail", 1, 1, ws2.max_row, 8)

        # -------- 3) Services --------
        ws3 = wb.create_sheet("Services")
        ws3.append(["Service ID", "Name", "Qty", "Revenue", "Paid", "Due"])
        bold_row(ws3, 1)
        for out_row, r in enumerate(report.service_reports, start=2):
            ws3.append([r.id, r.name, int(r.quantity), r.revenue, r.paid, r.due])
            for col in "DEF":
                money(ws3[f"{col}{out_row}"])
        ws3.freeze_panes = "A2"
        set_widths(ws3, {"A": 12, "B": 34, "C": 6, "D": 14, "E": 14, "F": 14})
        if ws3.max_row >= 2:
            add_table(ws3, "ServicesDetail", 1, 1, ws3.max_row, 6)

        # -------- 4) Utility expenses --------
        ws4 = wb.create_sheet("Utility Expenses")
        ws4.append(["Purchase ID", "Date", "Payee", "Description", "Amount", "Paid", "Status"])
        bold_row(ws4, 1)
        for out_row, p in enumerate(report.utility_expenses, start=2):
            ws4.append([p.id, p.date, p.supplier, p.description, p.amount, p.paid_amount, p.status])
            money(ws4[f"E{out_row}"])
            money(ws4[f"F{out_row}"])
        ws4.freeze_panes = "A2"
        set_widths(ws4, {"A": 12, "B": 12, "C": 22, "D": 34, "E": 14, "F": 14, "G": 8})
        if ws4.max_row >= 2:
            add_table(ws4, "UtilityExpenses", 1, 1, ws4.max_row, 7)

        wb.save(path)
