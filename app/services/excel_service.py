"""
Excel export of the feuille de route
"""

import io
from typing import Dict, List, Optional
import pandas as pd

from app.models import Event, EventPlanningItem, EventInformationField
from app.services.planning_service import PlanningService

class ExcelService:
    """Service for building run-of-show spreadsheets"""

    PLANNING_COLUMNS = ['Heure', 'Intitulé', 'Groupe']
    INFO_COLUMNS = ['Département', 'Contenu', 'Lien']
    GROUP_LABELS = {'artistes': 'Artistes', 'techniques': 'Techniques'}
    SECTION_LABELS = {'son': 'Son', 'lumiere': 'Lumière', 'plateau': 'Plateau', 'general': 'Général'}

    @staticmethod
    def planning_frame(items: List[EventPlanningItem]) -> pd.DataFrame:
        rows = [
            [item.heure, item.intitule, ExcelService.GROUP_LABELS.get(item.groupe, item.groupe)]
            for item in items
        ]
        return pd.DataFrame(rows, columns=ExcelService.PLANNING_COLUMNS)

    @staticmethod
    def information_frame(fields: List[EventInformationField]) -> pd.DataFrame:
        by_section: Dict[str, EventInformationField] = {f.type_champ: f for f in fields}
        rows = []
        for section in PlanningService.INFO_SECTIONS:
            field = by_section.get(section.value)
            if field is None:
                continue
            rows.append([
                ExcelService.SECTION_LABELS[section.value],
                field.contenu_texte or '',
                field.chemin_fichier_supabase_storage or '',
            ])
        return pd.DataFrame(rows, columns=ExcelService.INFO_COLUMNS)

    @staticmethod
    def export_feuille_de_route(
        event: Event,
        items: List[EventPlanningItem],
        fields: List[EventInformationField],
        group: Optional[str] = None,
    ) -> bytes:
        """Workbook with a header block, the sorted timeline and the department notes"""
        timeline = PlanningService.feuille_de_route(items, group)

        header = pd.DataFrame(
            [
                ['Événement', event.nom_evenement],
                ['Début', event.date_debut.strftime('%d/%m/%Y %H:%M')],
                ['Fin', event.date_fin.strftime('%d/%m/%Y %H:%M')],
                ['Lieu', event.lieu or ''],
            ],
            columns=['Champ', 'Valeur'],
        )

        buffer = io.BytesIO()
        with pd.ExcelWriter(buffer, engine='openpyxl') as writer:
            header.to_excel(writer, index=False, sheet_name='Événement')
            ExcelService.planning_frame(timeline).to_excel(writer, index=False, sheet_name='Feuille de route')
            ExcelService.information_frame(fields).to_excel(writer, index=False, sheet_name='Informations')

        return buffer.getvalue()
