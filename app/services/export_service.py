"""
Participant and result export (legacy `;` CSV layout and Excel)
"""

import io
from typing import Dict, List

import pandas as pd

CSV_DELIMITER = ";"

PARTICIPANT_COLUMNS = ["id", "name", "surname", "gender", "age", "email", "phone", "raceRole"]
RESULT_COLUMNS = ["date", "raceId", "id", "time"]


class ExportService:
    """Renders stored rows in the formats organisers download"""

    @staticmethod
    def participants_frame(participants: List[Dict]) -> pd.DataFrame:
        rows = [{column: p.get(column) for column in PARTICIPANT_COLUMNS} for p in participants]
        return pd.DataFrame(rows, columns=PARTICIPANT_COLUMNS)

    @staticmethod
    def results_frame(results: List[Dict]) -> pd.DataFrame:
        # same column names the file-backed participants/results.csv used
        rows = [
            {
                "date": r["occurrenceDate"],
                "raceId": r["heatId"],
                "id": r["participantRef"],
                "time": r["time"],
            }
            for r in results
        ]
        return pd.DataFrame(rows, columns=RESULT_COLUMNS)

    @staticmethod
    def to_csv(df: pd.DataFrame) -> bytes:
        """`;`-delimited with a header row, one record per line"""
        return df.to_csv(sep=CSV_DELIMITER, index=False).encode("utf-8")

    @staticmethod
    def to_excel(df: pd.DataFrame, sheet_name: str) -> bytes:
        buffer = io.BytesIO()
        with pd.ExcelWriter(buffer, engine='openpyxl') as writer:
            df.to_excel(writer, index=False, sheet_name=sheet_name)

        return buffer.getvalue()

    @staticmethod
    def participants_csv(participants: List[Dict]) -> bytes:
        return ExportService.to_csv(ExportService.participants_frame(participants))

    @staticmethod
    def participants_excel(participants: List[Dict]) -> bytes:
        return ExportService.to_excel(ExportService.participants_frame(participants), "Participants")

    @staticmethod
    def results_csv(results: List[Dict]) -> bytes:
        return ExportService.to_csv(ExportService.results_frame(results))
