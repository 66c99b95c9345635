from pocket_research.export.csv_export import export_raindrop_csv

__all__ = ["export_raindrop_csv"]
