"""Static specialty catalog offered to patients for legacy bookings."""

from typing import Dict, List, Optional

from pydantic import BaseModel

class CatalogWindow(BaseModel):
    day: str
    time: str
    date: str

class CatalogDoctor(BaseModel):
    name: str
    windows: List[CatalogWindow]

class SpecialtyCatalog(BaseModel):
    key: str
    name: str
    title: str
    doctors: List[CatalogDoctor]

    def find_window(self, doctor_name: str, date: str, time: str) -> Optional[CatalogWindow]:
        for doctor in self.doctors:
            if doctor.name != doctor_name:
                continue
            for window in doctor.windows:
                if window.date == date and window.time == time:
                    return window
        return None

def _doctor(name: str, *windows) -> CatalogDoctor:
    return CatalogDoctor(
        name=name,
        windows=[CatalogWindow(day=day, time=time, date=date) for day, time, date in windows],
    )

def _specialty(key: str, name: str, *doctors: CatalogDoctor) -> SpecialtyCatalog:
    return SpecialtyCatalog(key=key, name=name, title=f"{name} - Horários Disponíveis", doctors=list(doctors))

CATALOG: Dict[str, SpecialtyCatalog] = {
    entry.key: entry for entry in (
        _specialty(
            "ginecologia", "Ginecologia",
            _doctor(
                "Dra. Ana Carolina - Ginecologia",
                ("Segunda-feira", "08:00 - 12:00", "17/06/2025"),
                ("Quarta-feira", "14:00 - 18:00", "19/06/2025"),
                ("Sexta-feira", "08:00 - 12:00", "21/06/2025"),
            ),
            _doctor(
                "Dra. Mariana Santos - Ginecologia",
                ("Terça-feira", "13:00 - 17:00", "18/06/2025"),
                ("Quinta-feira", "08:00 - 12:00", "20/06/2025"),
                ("Sábado", "09:00 - 13:00", "22/06/2025"),
            ),
        ),
        _specialty(
            "pediatria", "Pediatria",
            _doctor(
                "Dr. Carlos Eduardo - Pediatria",
                ("Segunda-feira", "07:00 - 11:00", "17/06/2025"),
                ("Terça-feira", "13:00 - 17:00", "18/06/2025"),
                ("Quinta-feira", "08:00 - 12:00", "20/06/2025"),
                ("Sexta-feira", "14:00 - 18:00", "21/06/2025"),
            ),
            _doctor(
                "Dra. Fernanda Lima - Pediatria",
                ("Segunda-feira", "14:00 - 18:00", "17/06/2025"),
                ("Quarta-feira", "08:00 - 12:00", "19/06/2025"),
                ("Sexta-feira", "13:00 - 17:00", "21/06/2025"),
            ),
        ),
        _specialty(
            "clinica-geral", "Clínica Geral",
            _doctor(
                "Dr. Roberto Silva - Clínica Geral",
                ("Segunda-feira", "08:00 - 12:00", "17/06/2025"),
                ("Terça-feira", "14:00 - 18:00", "18/06/2025"),
                ("Quarta-feira", "08:00 - 12:00", "19/06/2025"),
                ("Quinta-feira", "13:00 - 17:00", "20/06/2025"),
                ("Sexta-feira", "08:00 - 12:00", "21/06/2025"),
            ),
            _doctor(
                "Dra. Patricia Oliveira - Clínica Geral",
                ("Segunda-feira", "13:00 - 17:00", "17/06/2025"),
                ("Terça-feira", "08:00 - 12:00", "18/06/2025"),
                ("Quarta-feira", "14:00 - 18:00", "19/06/2025"),
                ("Quinta-feira", "08:00 - 12:00", "20/06/2025"),
            ),
        ),
        _specialty(
            "cardiologia", "Cardiologia",
            _doctor(
                "Dr. João Cardoso - Cardiologia",
                ("Segunda-feira", "09:00 - 13:00", "17/06/2025"),
                ("Quarta-feira", "15:00 - 19:00", "19/06/2025"),
                ("Sexta-feira", "08:00 - 12:00", "21/06/2025"),
            ),
        ),
        _specialty(
            "dermatologia", "Dermatologia",
            _doctor(
                "Dra. Sofia Pele - Dermatologia",
                ("Terça-feira", "14:00 - 18:00", "18/06/2025"),
                ("Quinta-feira", "09:00 - 13:00", "20/06/2025"),
                ("Sábado", "08:00 - 12:00", "22/06/2025"),
            ),
        ),
        _specialty(
            "ortopedia", "Ortopedia",
            _doctor(
                "Dr. Marcos Ossos - Ortopedia",
                ("Segunda-feira", "14:00 - 18:00", "17/06/2025"),
                ("Quarta-feira", "08:00 - 12:00", "19/06/2025"),
                ("Sexta-feira", "13:00 - 17:00", "21/06/2025"),
            ),
        ),
    )
}
