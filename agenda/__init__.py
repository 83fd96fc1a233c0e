"""
Agenda appuntamenti.

Struttura:
- config.py     : configurazione da ambiente / .env
- db.py         : engine e sessioni SQLAlchemy
- models.py     : modello ORM Appointment
- migrations.py : migrazioni versionate e reset dello schema
- services.py   : AppointmentStore (registrazione e ricerca per intervallo)
- seed.py       : appuntamenti iniziali da file JSON
- cli.py        : comandi da terminale
- api_main.py   : API HTTP (FastAPI)
"""
