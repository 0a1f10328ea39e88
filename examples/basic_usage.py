#!/usr/bin/env python3
"""Basic usage example for bsonwire.

This example demonstrates:
1. Defining a record with Pydantic
2. Encoding to a binary document
3. Decoding back into a new record and into a plain dict
4. Inspecting element sizes
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import Field

from bsonwire import Document, Int32, UInt16, WireName, decode, encoded_size, field_sizes, marshal, unmarshal


# Define a record class
class StatusReport(Document):
    """Vehicle status report.

    Fixed-width integer kinds decide whether each number is written as an
    int32 or an int64.
    """

    vehicle_id: UInt16 = WireName("vid", description="Vehicle ID (0-65535)")
    depth_cm: Int32 = Field(description="Depth in centimeters")
    battery_pct: float = Field(ge=0.0, le=100.0, description="Battery percentage")
    active: bool = Field(description="Vehicle active flag")
    reported_at: Optional[datetime] = None


def main() -> None:
    """Run the basic usage example."""
    print("=" * 60)
    print("bsonwire Basic Usage Example")
    print("=" * 60)
    print()

    # Create a record instance
    print("1. Creating a status report...")
    msg = StatusReport(
        vehicle_id=42,
        depth_cm=2500,
        battery_pct=87.5,
        active=True,
        reported_at=datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
    )

    print(f"   Vehicle ID: {msg.vehicle_id}")
    print(f"   Depth: {msg.depth_cm} cm ({msg.depth_cm / 100:.1f} m)")
    print(f"   Battery: {msg.battery_pct}%")
    print(f"   Active: {msg.active}")
    print()

    # Analyze element sizes
    print("2. Analyzing element sizes...")
    sizes = field_sizes(msg)
    for key, size in sizes.items():
        print(f"   {key}: {size} bytes")
    print(f"   Total: {encoded_size(msg)} bytes (including 5 bytes of framing)")
    print()

    # Encode the record
    print("3. Encoding to a binary document...")
    encoded_data = marshal(msg)

    print(f"   Encoded size: {len(encoded_data)} bytes")
    print(f"   Hex: {encoded_data.hex()}")
    print()

    # Decode into a new record
    print("4. Decoding into a new StatusReport...")
    decoded_msg = decode(StatusReport, encoded_data)

    print(f"   Vehicle ID: {decoded_msg.vehicle_id!r}")
    print(f"   Depth: {decoded_msg.depth_cm!r}")
    print(f"   Reported at: {decoded_msg.reported_at}")
    print()

    # Decode into a plain dict
    print("5. Decoding into a plain dict...")
    generic: dict[str, Any] = {}
    unmarshal(encoded_data, generic)
    for key, value in generic.items():
        print(f"   {key}: {value!r}")
    print()

    # Verify round-trip
    print("6. Verifying round-trip...")
    if decoded_msg == msg:
        print("   Round-trip successful! Records match.")
    else:
        print("   Round-trip failed! Records don't match.")
    print()

    print("=" * 60)
    print("Example complete!")
    print("=" * 60)


if __name__ == "__main__":
    main()
