"""
Run-of-show (feuille de route) and department information helpers
"""

from typing import Any, Dict, Iterable, List, Optional

from app.models import EventPlanningItem, EventInformationField
from app.models.enums import InfoFieldType, PlanningGroup
from app.services.errors import ValidationFailed


class PlanningService:
    """Normalisation of the planning and information blocks of an event"""

    INFO_SECTIONS = [InfoFieldType.SON, InfoFieldType.LUMIERE, InfoFieldType.PLATEAU, InfoFieldType.GENERAL]

    @staticmethod
    def normalize_items(items: Iterable[Any]) -> List[Dict[str, Any]]:
        """Drop blank rows and number the rest 0..n-1 in list order.

        ``items`` may be schema objects or dicts with ``heure``, ``intitule`` and
        ``groupe`` keys.
        """
        rows = []
        for item in items:
            data = item if isinstance(item, dict) else item.model_dump()
            heure = (data.get("heure") or "").strip()
            intitule = (data.get("intitule") or "").strip()
            if not heure or not intitule:
                continue
            groupe = data.get("groupe") or PlanningGroup.TECHNIQUES
            try:
                groupe = PlanningGroup(groupe)
            except ValueError:
                raise ValidationFailed(f"Unknown planning group '{groupe}'")
            rows.append({"heure": heure, "intitule": intitule, "groupe": groupe.value})

        for index, row in enumerate(rows):
            row["ordre"] = index
        return rows

    @staticmethod
    def normalize_information(fields: Iterable[Any]) -> List[Dict[str, Any]]:
        """One row per department with text or link; later entries replace earlier ones"""
        by_section: Dict[InfoFieldType, Dict[str, Any]] = {}
        for field in fields:
            data = field if isinstance(field, dict) else field.model_dump()
            section = InfoFieldType(data["type_champ"])
            text = (data.get("contenu_texte") or "").strip()
            link = (data.get("lien") or data.get("chemin_fichier_supabase_storage") or "").strip()
            if not text and not link:
                by_section.pop(section, None)
                continue
            by_section[section] = {
                "type_champ": section.value,
                "contenu_texte": text or None,
                "chemin_fichier_supabase_storage": link or None,
            }

        return [by_section[s] for s in PlanningService.INFO_SECTIONS if s in by_section]

    @staticmethod
    def feuille_de_route(
        items: Iterable[EventPlanningItem],
        group: Optional[str] = None,
    ) -> List[EventPlanningItem]:
        """Items for one group (or all), sorted by time of day"""
        selected = [item for item in items if group is None or item.groupe == group]
        return sorted(selected, key=lambda item: (item.heure, item.ordre))

    @staticmethod
    def information_by_section(fields: Iterable[EventInformationField]) -> Dict[str, Dict[str, Optional[str]]]:
        return {
            field.type_champ: {
                "contenu_texte": field.contenu_texte,
                "lien": field.chemin_fichier_supabase_storage,
            }
            for field in fields
        }
