import csv
import io
import logging

from krishi_weather.models import ProfitInput, ProfitResult

logger = logging.getLogger("krishi_weather.profit")


def calculate_profit(inp: ProfitInput) -> ProfitResult:
    """
    Estimate cost, revenue and return for a crop over its whole area

    Costs and yield are given per hectare, the selling price per quintal.
    ROI is left empty when there is no cost to divide by.
    """
    total_cost = (inp.seed_cost + inp.fertilizer_cost + inp.labor_cost) * inp.area
    total_yield = inp.expected_yield * inp.area
    revenue = total_yield * inp.selling_price
    profit = revenue - total_cost
    roi = round(profit / total_cost * 100, 2) if total_cost else None

    logger.debug(f"Profit for {inp.crop} on {inp.area} ha: cost {total_cost:.2f}, revenue {revenue:.2f}")
    return ProfitResult(
        total_cost=round(total_cost, 2),
        revenue=round(revenue, 2),
        profit=round(profit, 2),
        roi=roi,
        break_even=round(total_cost / inp.selling_price, 2),
        total_yield=round(total_yield, 2),
    )


def to_csv(inp: ProfitInput, result: ProfitResult) -> str:
    """Inputs followed by results as a two-column CSV report"""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(["Profit Calculator Results"])
    writer.writerows(
        [
            ["Crop", inp.crop],
            ["Area (hectares)", inp.area],
            ["Seed Cost (per hectare)", inp.seed_cost],
            ["Fertilizer Cost (per hectare)", inp.fertilizer_cost],
            ["Labor Cost (per hectare)", inp.labor_cost],
            ["Expected Yield (quintals/hectare)", inp.expected_yield],
            ["Selling Price (per quintal)", inp.selling_price],
        ]
    )
    writer.writerow([])
    writer.writerow(["Results"])
    writer.writerows(
        [
            ["Total Cost", f"{result.total_cost:.2f}"],
            ["Total Revenue", f"{result.revenue:.2f}"],
            ["Net Profit", f"{result.profit:.2f}"],
            ["ROI (%)", "" if result.roi is None else f"{result.roi:.2f}"],
            ["Break-even Quantity (quintals)", f"{result.break_even:.2f}"],
            ["Total Expected Yield (quintals)", f"{result.total_yield:.2f}"],
        ]
    )
    return buffer.getvalue()
