# pawfence/Services/boundary_importer.py

"""
Importación y saneamiento de límites (safe zones) en formato GeoJSON.

IMPORTANTE: Las coordenadas deben estar en EPSG:4326, posiciones [lng, lat].

Funcionalidad:
- `sanitize_boundary_geometry`: valida un Polygon GeoJSON y lo repara con
  Shapely (buffer(0)) cuando tiene auto-intersecciones reparables. Lo usan
  tanto las rutas de límites como el importador.
- `GeoJSONBoundaryImporter`: importa un FeatureCollection cuyas features
  llevan en `properties` los campos `id`, `dog_id`, `user_id` y `name`.
"""

import json
from typing import Any, Dict, Mapping, Optional, Tuple

from shapely.errors import GEOSException
from shapely.geometry import mapping, shape
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from pawfence.Core.errors import MalformedBoundary
from pawfence.Models.boundary import Boundary
from pawfence.Repositories.boundary import (
    create_boundary,
    delete_boundary,
    get_boundary_by_id,
    update_boundary,
)
from pawfence.Repositories.dog import dog_exists
from pawfence.Services.geofence_core import BoundaryPolygon, check_polygon


def _as_lists(value: Any) -> Any:
    # shapely.mapping() returns nested tuples
    if isinstance(value, (list, tuple)):
        return [_as_lists(v) for v in value]
    return value


def sanitize_boundary_geometry(
    boundary_id: Optional[str],
    dog_id: str,
    geometry: Mapping[str, Any],
) -> Dict[str, Any]:
    """
    Return a GeoJSON Polygon the evaluator accepts, or raise MalformedBoundary.

    Steps:
        1. Structural parse into BoundaryPolygon (type, rings, numeric positions)
           and shape check; only self-intersecting rings go on to step 2
        2. Shapely validity check; invalid shapes are repaired with buffer(0)
           and rejected if the repair is not a single polygon of the same area
        3. Final shape check (vertex count, ranges, area, simple rings)
    """
    polygon = BoundaryPolygon.from_geojson(boundary_id, dog_id, geometry)

    try:
        check_polygon(polygon)
    except MalformedBoundary as exc:
        # Only self-intersections get a repair attempt.
        if "self-intersecting" not in exc.reason:
            raise

    try:
        geom = shape(polygon.to_geojson())
        if not geom.is_valid:
            original_area = geom.area
            geom = geom.buffer(0)
            if geom.is_empty or geom.geom_type != "Polygon":
                raise MalformedBoundary(
                    boundary_id,
                    f"invalid geometry could not be repaired into a single polygon ({geom.geom_type})",
                )
            # buffer(0) drops one lobe of a bowtie; only area-preserving repairs are kept
            if abs(geom.area - original_area) > 1e-9 * max(geom.area, original_area):
                raise MalformedBoundary(boundary_id, "self-intersecting ring cannot be repaired")
            print(f"[IMPORT] Boundary '{boundary_id}' repaired with buffer(0)")
            polygon = BoundaryPolygon.from_geojson(
                boundary_id, dog_id, {"type": "Polygon", "coordinates": _as_lists(mapping(geom)["coordinates"])}
            )
    except (ValueError, TypeError, GEOSException) as e:
        raise MalformedBoundary(boundary_id, f"invalid geometry: {e}") from e

    check_polygon(polygon)
    return polygon.to_geojson()


class GeoJSONBoundaryImporter:
    """
    Importador de límites desde GeoJSON.
    """

    def import_from_file(
        self,
        db: Session,
        filepath: str,
        mode: str = 'skip'
    ) -> Tuple[int, int, int, int]:
        """
        Importa límites desde un archivo GeoJSON local.

        Args:
            db: Session SQLAlchemy
            filepath: Ruta al archivo GeoJSON (EPSG:4326)
            mode: 'skip' | 'update' | 'replace'

        Returns:
            Tupla (created, updated, skipped, failed)
        """
        print(f"[IMPORT] Loading boundaries from: {filepath}")

        try:
            with open(filepath, 'r', encoding='utf-8') as f:
                geojson_data = json.load(f)
        except FileNotFoundError:
            print(f"[IMPORT] File not found: {filepath}")
            return (0, 0, 0, 0)
        except json.JSONDecodeError as e:
            print(f"[IMPORT] Invalid JSON format: {e}")
            return (0, 0, 0, 0)

        return self.import_from_geojson_dict(db, geojson_data, mode=mode)

    def import_from_geojson_dict(
        self,
        db: Session,
        geojson_dict: dict,
        mode: str = 'skip'
    ) -> Tuple[int, int, int, int]:
        """
        Importa límites desde un diccionario FeatureCollection.

        Features sin geometría, sin id o sin dog_id cuentan como 'skipped';
        features de perros inexistentes o con geometría inválida como 'failed'.
        """
        if mode not in ('skip', 'update', 'replace'):
            raise ValueError(f"Unknown import mode: {mode!r}")

        if not isinstance(geojson_dict, dict) or geojson_dict.get('type') != 'FeatureCollection':
            print("[IMPORT] Invalid GeoJSON: expected 'FeatureCollection'")
            return (0, 0, 0, 0)

        created = 0
        updated = 0
        skipped = 0
        failed = 0

        features = geojson_dict.get('features') or []
        print(f"[IMPORT] Loaded {len(features)} boundaries")

        for feature in features:
            properties = {}
            try:
                properties = feature.get('properties') or {}
                geometry_dict = feature.get('geometry')

                if not geometry_dict:
                    print("[IMPORT] Skipping feature without geometry")
                    skipped += 1
                    continue

                boundary_id = str(properties.get('id') or feature.get('id') or '').strip()
                dog_id = str(properties.get('dog_id') or '').strip()
                if not boundary_id or not dog_id:
                    print("[IMPORT] Warning: Feature without id or dog_id, skipping")
                    skipped += 1
                    continue

                if not dog_exists(db, dog_id):
                    print(f"[IMPORT] Unknown dog '{dog_id}' for boundary {boundary_id}")
                    failed += 1
                    continue

                try:
                    clean_geometry = sanitize_boundary_geometry(boundary_id, dog_id, geometry_dict)
                except MalformedBoundary as e:
                    print(f"[IMPORT] Invalid geometry for {boundary_id}: {e.reason}")
                    failed += 1
                    continue

                boundary_data = {
                    'id': boundary_id,
                    'dog_id': dog_id,
                    'user_id': properties.get('user_id'),
                    'name': properties.get('name') or f'Boundary {boundary_id}',
                    'boundary_geojson': clean_geometry,
                }

                existing: Optional[Boundary] = get_boundary_by_id(db, boundary_id)

                if existing:
                    if mode == 'skip':
                        skipped += 1
                        print(f"[IMPORT] Skipped (exists): {boundary_id}")
                        continue

                    elif mode == 'update':
                        update_boundary(db, boundary_id, boundary_data)
                        updated += 1
                        print(f"[IMPORT] Updated: {boundary_id}")

                    elif mode == 'replace':
                        # Containment rows of the old shape go with it.
                        delete_boundary(db, boundary_id)
                        create_boundary(db, boundary_data)
                        created += 1
                        print(f"[IMPORT] Replaced: {boundary_id}")

                else:
                    create_boundary(db, boundary_data)
                    created += 1
                    print(f"[IMPORT] Created: {boundary_id} (dog {dog_id})")

            except IntegrityError as ie:
                db.rollback()
                failed += 1
                print(f"[IMPORT] IntegrityError for {properties.get('id', 'unknown')}: {ie}")

            except (SQLAlchemyError, AttributeError, TypeError) as e:
                db.rollback()
                failed += 1
                print(f"[IMPORT] Error importing {properties.get('id', 'unknown')}: {e}")

        print(f"[IMPORT] Processed: {created} created, {updated} updated, "
              f"{skipped} skipped, {failed} failed")

        return (created, updated, skipped, failed)


# Singleton
boundary_importer = GeoJSONBoundaryImporter()
