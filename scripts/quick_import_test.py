from tiling_suite.domain import models
from tiling_suite.services.calculation import calculate_totals


def main() -> None:
    tile = models.Tile(
        category="Sitting room floor",
        cartons=4,
        sqm=6,
        unit_price=10000,
        tile_type=models.TileType.FLOOR,
        size="60x60",
    )
    quotation = models.Quotation(
        id="demo",
        date="2024-05-10",
        client_details=models.ClientDetails(client_name="Demo"),
        tiles=[tile],
    )
    print(calculate_totals(quotation, models.Settings(tax_percentage=0.0)))


if __name__ == "__main__":
    main()
