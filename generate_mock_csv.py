"""
Generate mock monthly sales-and-labor CSV exports for testing
This creates upload-ready files for the three-month KPI review

"""
import sys
from datetime import datetime

from data_ingestion import MOCK_DATA_DIR, generate_mock_months

DEFAULT_LOCATIONS = ["Columbus", "Cincinnati"]


def generate_location_csvs(location_name, months=3):
    """Generate monthly CSV files for one location"""
    print(f"Generating {months} month(s) of mock data for {location_name}...")
    paths = generate_mock_months(location_name, months=months)
    for path in paths:
        print(f"   - {path}")
    return paths


def generate_all_location_csvs(months=3):
    """Generate CSV files for the demo locations"""
    print("Generating mock monthly export CSV files...")
    print(f"Run date: {datetime.now().date()}")
    print(f"Locations: {', '.join(DEFAULT_LOCATIONS)}\n")

    for location_name in DEFAULT_LOCATIONS:
        generate_location_csvs(location_name, months)
        print()


if __name__ == "__main__":
    if len(sys.argv) == 1:
        generate_all_location_csvs()
        print(f"\nAll CSV files generated successfully in the '{MOCK_DATA_DIR}' folder")

    elif len(sys.argv) == 2:
        location = sys.argv[1]
        generate_location_csvs(location)
        print(f"\nCSV files generated for {location} in the '{MOCK_DATA_DIR}' folder")

    elif len(sys.argv) == 3:
        location = sys.argv[1]
        try:
            months = int(sys.argv[2])
            generate_location_csvs(location, months)
            print(f"\n{months} month(s) of data generated for {location} in the '{MOCK_DATA_DIR}' folder")
        except ValueError:
            print("Error: Months must be a number")
            print("Usage: python generate_mock_csv.py Columbus 3")

    print("\nYou can now submit these files for admin review.")
