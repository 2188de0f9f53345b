"""MaxMind GeoLite2 readers exposed as city and ASN lookup services."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional, Union

import geoip2.database
import geoip2.errors
import maxminddb.errors

from pmacct_prometheus.core.errors import LookupFailed
from pmacct_prometheus.core.models import IPAddress
from pmacct_prometheus.core.resolver import AsnRecord, CityRecord

logger = logging.getLogger(__name__)


class _MaxMindReader:
    """Shared open/close handling for one .mmdb file.

    The reader is opened eagerly so a missing, corrupt or wrong edition
    database fails at startup rather than on the first flow.
    """

    kind = "mmdb"
    edition = ""

    def __init__(self, db_path: Union[str, Path]) -> None:
        path = Path(db_path)
        if not path.is_file():
            raise FileNotFoundError(f"{self.kind} database not found: {path}")

        self.db_path = path
        self._reader: Optional[geoip2.database.Reader] = geoip2.database.Reader(str(path))

        database_type = self._reader.metadata().database_type
        if self.edition not in database_type:
            self.close()
            raise ValueError(
                f"{path} is a {database_type} database, expected a GeoLite2 {self.edition} database"
            )
        logger.info("opened %s database %s", self.kind, path)

    @property
    def reader(self) -> geoip2.database.Reader:
        if self._reader is None:
            raise LookupFailed(f"{self.kind} database {self.db_path} is closed")
        return self._reader

    def close(self) -> None:
        if self._reader is not None:
            self._reader.close()
            self._reader = None
            logger.debug("closed %s database %s", self.kind, self.db_path)

    def __enter__(self) -> Any:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()


class MaxMindCityLookup(_MaxMindReader):
    """City lookup over GeoLite2-City.mmdb.

    Names are the English names, as the database's default locale gives them.
    """

    kind = "city"
    edition = "City"

    def lookup_city(self, ip: IPAddress) -> Optional[CityRecord]:
        try:
            response = self.reader.city(str(ip))
        except geoip2.errors.AddressNotFoundError:
            return None
        except (ValueError, TypeError, maxminddb.errors.InvalidDatabaseError) as e:
            raise LookupFailed(f"city lookup for {ip}: {e}") from e

        return CityRecord(
            country=response.country.name or "",
            country_iso=response.country.iso_code or "",
            city=response.city.name or "",
            latitude=response.location.latitude or 0.0,
            longitude=response.location.longitude or 0.0,
        )


class MaxMindAsnLookup(_MaxMindReader):
    """ASN lookup over GeoLite2-ASN.mmdb."""

    kind = "asn"
    edition = "ASN"

    def lookup_asn(self, ip: IPAddress) -> Optional[AsnRecord]:
        try:
            response = self.reader.asn(str(ip))
        except geoip2.errors.AddressNotFoundError:
            return None
        except (ValueError, TypeError, maxminddb.errors.InvalidDatabaseError) as e:
            raise LookupFailed(f"asn lookup for {ip}: {e}") from e

        if not response.autonomous_system_number:
            return None

        return AsnRecord(
            number=int(response.autonomous_system_number),
            organization=response.autonomous_system_organization or "",
        )


__all__ = ["MaxMindCityLookup", "MaxMindAsnLookup"]
