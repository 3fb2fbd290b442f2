#!/usr/bin/env python3
"""
Generate synthetic benchmark inputs: a World Bank style population CSV and
an AirNow style directory tree of hourly readings.
"""

import argparse
from pathlib import Path

import numpy as np

# Configuration
SHARED_DIR = Path("shared")
INPUT_DIR = SHARED_DIR / "input"
POPULATION_FILE = INPUT_DIR / "population.csv"
AIR_QUALITY_DIR = INPUT_DIR / "air_quality"

FIRST_YEAR = 1960
LAST_YEAR = 2023
PARAMETERS = [("PM2.5", "UG/M3"), ("OZONE", "PPB"), ("PM10", "UG/M3")]


def aqi_category(aqi: int) -> int:
    """EPA category index (1-6) for an AQI value."""
    for category, upper in enumerate((50, 100, 150, 200, 300), start=1):
        if aqi <= upper:
            return category
    return 6


def generate_population(output_path: Path, countries: int, rng: np.random.Generator):
    """
    Write a population CSV with the World Bank preamble, header and one
    'Population, total' row per country, plus a few other-indicator rows
    that the loader is expected to skip.

    Args:
        output_path: Destination CSV
        countries: Number of synthetic countries
        rng: Seeded random generator
    """
    print(f"Generating {output_path.name} ({countries} countries)...")
    years = list(range(FIRST_YEAR, LAST_YEAR + 1))

    with open(output_path, 'w', encoding='utf-8') as f:
        f.write('"Data Source","World Development Indicators",\n\n')
        f.write('"Last Updated Date","2024-06-28",\n\n')
        f.write('"Country Name","Country Code","Indicator Name","Indicator Code",'
                + ','.join(f'"{y}"' for y in years) + ',\n')

        for i in range(countries):
            code = f"C{i:04d}"
            base = int(rng.integers(50_000, 200_000_000))
            growth = rng.normal(0.015, 0.01, size=len(years))
            series = base * np.cumprod(1.0 + growth)
            # Some countries have gaps in their early series
            missing = int(rng.integers(0, 10)) if rng.random() < 0.2 else 0
            cells = ['""' if n < missing else f'"{int(v)}"' for n, v in enumerate(series)]
            f.write(f'"Country {i}","{code}","Population, total","SP.POP.TOTL",' + ','.join(cells) + ',\n')

            if i % 50 == 0:
                f.write(f'"Country {i}","{code}","Population growth (annual %)","SP.POP.GROW",'
                        + ','.join('"1.5"' for _ in years) + ',\n')

    actual_size = output_path.stat().st_size
    print(f"  ✓ Created: {output_path.name} ({actual_size / (1024*1024):.2f} MB)")
    return actual_size


def generate_air_quality(output_dir: Path, days: int, sites: int, rng: np.random.Generator):
    """
    Write one directory per day, each holding one CSV per hour of readings.
    A header line and an occasional malformed line are included per file.
    """
    print(f"Generating {output_dir.name}/ ({days} days x {sites} sites)...")
    total_size = 0
    site_coords = rng.uniform([32.0, -124.0], [42.0, -114.0], size=(sites, 2))

    for day in range(days):
        date = f"2020-08-{day + 1:02d}"
        day_dir = output_dir / date.replace('-', '')
        day_dir.mkdir(parents=True, exist_ok=True)
        # Fire days push AQI up for the whole day
        day_level = 40 + 120 * rng.random() if rng.random() < 0.3 else 20 + 40 * rng.random()

        for hour in range(24):
            path = day_dir / f"{date.replace('-', '')}-{hour:02d}.csv"
            lines = ["latitude,longitude,datetime,parameter,value,unit,raw_concentration,"
                     "aqi,aqi_category,site_name,agency_name,site_id,full_site_id"]
            aqis = np.clip(rng.normal(day_level, 25, size=sites), 0, 500).astype(int)
            for s in range(sites):
                parameter, unit = PARAMETERS[s % len(PARAMETERS)]
                aqi = int(aqis[s])
                value = round(aqi * 0.35, 1)
                lat, lon = site_coords[s]
                lines.append(
                    f'{lat:.4f},{lon:.4f},{date}T{hour:02d}:00,{parameter},{value},{unit},{value},'
                    f'{aqi},{aqi_category(aqi)},"Site {s}, CA","Agency {s % 7}",{60000 + s},840{60000 + s}'
                )
            if hour % 6 == 0:
                lines.append("not,a,valid,reading")
            path.write_text('\n'.join(lines) + '\n', encoding='utf-8')
            total_size += path.stat().st_size

    print(f"  ✓ Created: {output_dir.name}/ ({total_size / (1024*1024):.2f} MB)")
    return total_size


def main():
    """Generate all benchmark input files."""
    parser = argparse.ArgumentParser(description="Generate synthetic benchmark inputs")
    parser.add_argument("--countries", type=int, default=5000, help="Population rows")
    parser.add_argument("--days", type=int, default=31, help="Days of air quality data")
    parser.add_argument("--sites", type=int, default=200, help="Monitoring sites")
    parser.add_argument("--seed", type=int, default=42, help="Random seed")
    args = parser.parse_args()

    print("=" * 70)
    print("Generating Benchmark Input Files")
    print("=" * 70)

    INPUT_DIR.mkdir(parents=True, exist_ok=True)
    rng = np.random.default_rng(args.seed)

    total_size = generate_population(POPULATION_FILE, args.countries, rng)
    total_size += generate_air_quality(AIR_QUALITY_DIR, min(args.days, 31), args.sites, rng)

    print("\n" + "=" * 70)
    print("✓ Generation complete!")
    print(f"  Total size: {total_size / (1024*1024):.2f} MB")
    print(f"  Files created in: {INPUT_DIR}")
    print("=" * 70)
    return 0


if __name__ == "__main__":
    exit(main())
