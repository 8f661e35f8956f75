# core/lookup_catalog.py
from dataclasses import dataclass, field
from typing import Dict, Final, Tuple
from model.journal import DatasetDescriptor


@dataclass(frozen=True)
class LookupRoute:
    path: str  # gateway route, e.g. "/reniec"
    upstream_path: str  # appended to UPSTREAM_BASE_URL
    required: Tuple[str, ...]
    dataset_id: str
    dataset_type: str
    defaults: Dict[str, str] = field(default_factory=dict)


LOOKUP_ROUTES: Final[Tuple[LookupRoute, ...]] = (
    LookupRoute("/reniec", "/persona/reniec", ("dni",), "dni.json", "dni",
                defaults={"source": "database"}),
    LookupRoute("/denuncias-dni", "/persona/denuncias-policiales-dni", ("dni",),
                "denuncias_dni.json", "denuncias_dni"),
    LookupRoute("/denuncias-placa", "/persona/denuncias-policiales-placa", ("placa",),
                "denuncias_placa.json", "denuncias_placa"),
    LookupRoute("/sueldos", "/persona/sueldos", ("dni",), "sueldos.json", "sueldos"),
    LookupRoute("/trabajos", "/persona/trabajos", ("dni",), "trabajos.json", "trabajos"),
    LookupRoute("/sunat", "/empresa/sunat", ("data",), "sunat_ruc.json", "sunat_ruc"),
    LookupRoute("/sunat-razon", "/empresa/sunat/razon-social", ("data",),
                "sunat_razon.json", "sunat_razon"),
    LookupRoute("/consumos", "/persona/consumos", ("dni",), "consumos.json", "consumos"),
    LookupRoute("/arbol", "/persona/arbol-genealogico", ("dni",), "arbol.json", "arbol"),
    LookupRoute("/familia1", "/persona/familia-1", ("dni",), "familia1.json", "familia1"),
    LookupRoute("/familia2", "/persona/familia-2", ("dni",), "familia2.json", "familia2"),
    LookupRoute("/familia3", "/persona/familia-3", ("dni",), "familia3.json", "familia3"),
    LookupRoute("/movimientos", "/persona/movimientos-migratorios", ("dni",),
                "movimientos.json", "movimientos"),
    LookupRoute("/matrimonios", "/persona/matrimonios", ("dni",),
                "matrimonios.json", "matrimonios"),
    LookupRoute("/empresas", "/persona/empresas", ("dni",), "empresas.json", "empresas"),
    LookupRoute("/direcciones", "/persona/direcciones", ("dni",),
                "direcciones.json", "direcciones"),
    LookupRoute("/correos", "/persona/correos", ("dni",), "correos.json", "correos"),
    LookupRoute("/telefonia-doc", "/telefonia/documento", ("documento",),
                "telefonia_documento.json", "telefonia_documento"),
    LookupRoute("/telefonia-num", "/telefonia/numero", ("numero",),
                "telefonia_numero.json", "telefonia_numero"),
    LookupRoute("/vehiculos", "/vehiculos/sunarp", ("placa",), "vehiculos.json", "vehiculos"),
    LookupRoute("/fiscalia-dni", "/persona/justicia/fiscalia/dni", ("dni",),
                "fiscalia_dni.json", "fiscalia_dni"),
    LookupRoute("/fiscalia-nombres", "/persona/justicia/fiscalia/nombres",
                ("nombres", "apepaterno", "apematerno"),
                "fiscalia_nombres.json", "fiscalia_nombres"),
)


def dataset_table() -> Dict[str, DatasetDescriptor]:
    """Route -> descriptor table used by the journal's dataset router."""
    return {
        r.path: DatasetDescriptor(dataset_id=r.dataset_id, dataset_type=r.dataset_type)
        for r in LOOKUP_ROUTES
    }
