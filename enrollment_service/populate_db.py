from enrollment_service.database import SessionLocal, engine
from enrollment_service.models import Activity, Base, Client, Enrollment, Trainer


def build_seed_data():
    trainers = [
        Trainer(code="T001", name="Jan Nowak", government_id="11111111A",
                phone="600100200", email="jan.nowak@example.com", hire_date="01/02/2020", nick="Janek"),
        Trainer(code="T002", name="Krzysztof Stefan", government_id="22222222B",
                phone="600300400", email="krzysztof.stefan@example.com", hire_date="15/09/2021", nick="Krzysiek"),
    ]

    activities = [
        Activity(id="A01", name="Yoga", description="Stretching", price=100,
                 day="Monday", hour=10, trainer_code="T001"),
        Activity(id="A02", name="Crossfit", description="Strength", price=120,
                 day="Monday", hour=18, trainer_code="T001"),
        Activity(id="A03", name="Pilates", description="Core", price=90,
                 day="Wednesday", hour=10, trainer_code="T002"),
        Activity(id="A04", name="Open gym", description="No instructor", price=50,
                 day="Saturday", hour=9, trainer_code=None),
    ]

    clients = [
        Client(num="S001", name="Jan Kowalski", government_id="12345678Z", birth_date="14/03/1990",
               email="jan.kowalski@example.com", start_date="01/01/2024", category="A"),
        Client(num="S002", name="Anna Nowak", government_id="23456789X", birth_date="02/11/2000",
               email="anna.nowak@example.com", start_date="10/01/2024", category="B"),
        Client(num="S003", name="Piotr Zielinski", government_id="34567890Y", birth_date=None,
               email="piotr.zielinski@example.com", start_date="20/02/2024", category="D"),
        Client(num="S004", name="Kasia Kwiatkowska", government_id="45678901W", birth_date="30/06/1985",
               phone="700800900", start_date="05/03/2024", category="C"),
    ]

    enrollments = [
        Enrollment(client_num="S001", activity_id="A01"),
        Enrollment(client_num="S002", activity_id="A01"),
        Enrollment(client_num="S003", activity_id="A01"),
        Enrollment(client_num="S004", activity_id="A03"),
    ]

    return trainers, activities, clients, enrollments


if __name__ == "__main__":
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    trainers, activities, clients, enrollments = build_seed_data()

    db = SessionLocal()
    db.add_all(trainers)
    db.add_all(clients)
    db.flush()
    db.add_all(activities)
    db.flush()
    db.add_all(enrollments)
    db.commit()
    db.close()
