# app.py
# -----------------------------------------------
# 🚒 Gardes & interventions: suivi et rémunération (Streamlit)
# -----------------------------------------------
# Requiert: streamlit, sqlmodel, pandas, reportlab, psycopg2-binary (avec Postgres)

import os
import uuid
from dataclasses import replace
from pathlib import Path
from datetime import datetime, time, timedelta
from zoneinfo import ZoneInfo

import streamlit as st

from config import MAX_COEFFICIENT, MIN_COEFFICIENT, default_worker_config, merge_worker_config
from domain import (
    Activity,
    ActivityStatus,
    ActivityType,
    ConfigurationError,
    Grade,
    Intervention,
    InterventionMotif,
    PreconditionError,
    SubActivityType,
    Worker,
)
from reports import activity_statement_pdf, month_label, monthly_statement_pdf
from repository import ActivityRepository
from services import PayCalculator, default_schedule, summarize_month, upcoming_activity
from utils import activities_to_dataframe, eur, format_hours, interventions_to_dataframe, result_to_dataframe

# =========================
# Fuseau horaire
# =========================
TZ = ZoneInfo(os.getenv("APP_TIMEZONE", "Europe/Paris"))
def now_local() -> datetime:
    # Naive local wall-clock time, like every stored activity
    return datetime.now(TZ).replace(tzinfo=None, second=0, microsecond=0)

# =========================
# Persistance selon l'environnement (repli local pour le développement)
# =========================
def _data_dir() -> Path:
    """First writable of $DATA_DIR, /data and ./data; the working directory otherwise."""
    env = os.getenv("DATA_DIR")
    candidates = ([Path(env)] if env else []) + [Path("/data"), Path.cwd() / "data"]
    for path in candidates:
        marker = path / ".gardes-write-check"
        try:
            path.mkdir(parents=True, exist_ok=True)
            marker.touch()
            marker.unlink()
        except OSError:
            continue
        return path
    return Path.cwd()

DATA_DIR = _data_dir()
DEFAULT_SQLITE = f"sqlite:///{(DATA_DIR / 'gardes.db').as_posix()}"
DB_URL = os.getenv("DATABASE_URL", DEFAULT_SQLITE)
WORKER_ID = os.getenv("WORKER_ID", "user-1")
WORKER_GRADE = os.getenv("WORKER_GRADE", Grade.SERGENT.name)

@st.cache_resource
def get_repo(url: str):
    return ActivityRepository(url, echo=False)

repo = get_repo(DB_URL)

def load_worker() -> Worker:
    try:
        return repo.get_worker(WORKER_ID)
    except LookupError:
        worker = Worker(id=WORKER_ID, grade=Grade[WORKER_GRADE], config=default_worker_config())
        repo.save_worker(worker)
        return worker

worker = load_worker()
calculator = PayCalculator(worker)

TITLE = "Mes gardes"
ACTIVITY_TYPES = list(ActivityType)
MOTIFS = [m.value for m in InterventionMotif]

# =========================
# Page
# =========================
st.set_page_config(page_title=TITLE, page_icon="🚒", layout="centered")
st.title(f"🚒 {TITLE}")
st.caption(f"{worker.grade.value} · {worker.station or 'Caserne non renseignée'}")

def _flash_success_if_any():
    msg = st.session_state.pop("_flash_success", None)
    if msg:
        st.success(msg)

_flash_success_if_any()

today = now_local()
month_start = datetime(today.year, today.month, 1)
next_month = datetime(today.year + 1, 1, 1) if today.month == 12 else datetime(today.year, today.month + 1, 1)
activities = repo.list_activities(WORKER_ID, month_start, next_month)

# =========================
# 📊 Tableau de bord du mois
# =========================
st.subheader(f"📊 {month_label(today.year, today.month)}")
summary = summarize_month(activities, worker, today.year, today.month)
c1, c2, c3, c4 = st.columns(4)
c1.metric("Revenu", f"{eur(summary.revenue)} €")
c2.metric("Heures", format_hours(summary.hours))
c3.metric("Gardes", summary.guards)
c4.metric("Interventions", summary.intervention_count)

upcoming = upcoming_activity(repo.list_activities(WORKER_ID, today), today)
if upcoming:
    st.info(f"Prochaine activité : {upcoming.type.label} le {upcoming.start:%d/%m/%Y à %H:%M}", icon="📅")

if summary.interventions:
    with st.expander(f"Interventions du mois ({summary.intervention_count})"):
        st.dataframe(interventions_to_dataframe(summary), use_container_width=True, hide_index=True)

df_acts = activities_to_dataframe(activities, worker)
if df_acts.empty:
    st.info("Aucune activité ce mois-ci.")
else:
    st.dataframe(df_acts.drop(columns=["ID"]), use_container_width=True, hide_index=True)

pdf_month = monthly_statement_pdf(activities, worker, summary)
st.download_button(
    "Télécharger le relevé du mois (PDF)",
    data=pdf_month,
    file_name=f"releve_{today.year:04d}-{today.month:02d}.pdf",
    mime="application/pdf",
    use_container_width=True,
)

# =========================
# ➕ Nouvelle activité
# =========================
st.subheader("➕ Nouvelle activité")
act_type = st.selectbox("Type", ACTIVITY_TYPES, format_func=lambda t: t.label)
act_day = st.date_input("Date", value=today.date())
act_time = st.time_input("Début", value=time(8, 0), step=timedelta(minutes=15))
start_dt, end_dt = default_schedule(act_type, datetime.combine(act_day, act_time))
if end_dt is None:
    end_day = st.date_input("Date de fin", value=act_day)
    end_time = st.time_input("Fin", value=(start_dt + timedelta(hours=8)).time(), step=timedelta(minutes=15))
    end_dt = datetime.combine(end_day, end_time)
else:
    st.caption(f"Du {start_dt:%d/%m %H:%M} au {end_dt:%d/%m %H:%M}")
act_notes = st.text_input("Notes (optionnel)")

if st.button("Enregistrer l'activité", use_container_width=True):
    if end_dt <= start_dt:
        st.warning("La fin doit être postérieure au début.")
    else:
        repo.add_activity(WORKER_ID, Activity(
            id=uuid.uuid4().hex, type=act_type, start=start_dt, end=end_dt,
            status=ActivityStatus.SAISIE, notes=(act_notes.strip() or None),
        ))
        st.session_state["_flash_success"] = f"{act_type.label} enregistrée ({start_dt:%d/%m %H:%M})."
        st.rerun()

# =========================
# 🧾 Détail d'une activité
# =========================
st.subheader("🧾 Détail d'une activité")
if not activities:
    st.caption("Rien à détailler pour ce mois.")
else:
    by_id = {a.id: a for a in activities}
    selected_id = st.selectbox(
        "Activité", list(by_id),
        format_func=lambda i: f"{by_id[i].start:%d/%m %H:%M} · {by_id[i].type.label}",
    )
    activity = by_id[selected_id]
    result = calculator.accumulate(activity)
    st.dataframe(result_to_dataframe(result), use_container_width=True, hide_index=True)
    st.markdown(f"**Total : {eur(result.total_amount)} €** · {format_hours(activity.duration_hours)}")

    new_status = st.selectbox(
        "Statut", list(ActivityStatus), index=list(ActivityStatus).index(activity.status),
        format_func=lambda s: s.value,
    )
    if new_status != activity.status:
        repo.update_status(activity.id, new_status)
        st.rerun()

    st.download_button(
        "Télécharger le détail (PDF)",
        data=activity_statement_pdf(activity, result),
        file_name=f"activite_{activity.start:%Y%m%d_%H%M}.pdf",
        mime="application/pdf",
        use_container_width=True,
    )

    # ➕ Intervention, bornée à l'activité sélectionnée
    with st.expander("➕ Ajouter une intervention"):
        motif = st.selectbox("Motif", MOTIFS)
        inter_day = st.date_input("Date de l'intervention", value=activity.start.date(),
                                  min_value=activity.start.date(), max_value=activity.end.date())
        inter_start = st.time_input("Début de l'intervention", value=activity.start.time(), step=timedelta(minutes=5))
        inter_minutes = st.number_input("Durée (min)", min_value=5, step=5, value=60)
        i_start = datetime.combine(inter_day, inter_start)
        i_end = min(i_start + timedelta(minutes=int(inter_minutes)), activity.end)
        if st.button("Enregistrer l'intervention", use_container_width=True):
            if not (activity.start <= i_start < activity.end):
                st.warning("L'intervention doit commencer pendant l'activité.")
            else:
                try:
                    repo.add_intervention(activity.id, Intervention(
                        id=uuid.uuid4().hex, start=i_start, end=i_end, motif=motif,
                    ))
                except PreconditionError:
                    st.warning("Cette intervention chevauche une intervention déjà saisie.")
                else:
                    st.session_state["_flash_success"] = f"Intervention {motif} enregistrée ({i_start:%H:%M}-{i_end:%H:%M})."
                    st.rerun()

    # ✏️ Modification / suppression
    with st.expander("✏️ Modifier ou supprimer l'activité"):
        edit_type = st.selectbox("Type", ACTIVITY_TYPES, index=ACTIVITY_TYPES.index(activity.type),
                                 format_func=lambda t: t.label, key=f"edit_type_{activity.id}")
        e1, e2 = st.columns(2)
        edit_start = datetime.combine(
            e1.date_input("Début (date)", value=activity.start.date(), key=f"edit_start_day_{activity.id}"),
            e2.time_input("Début (heure)", value=activity.start.time(), step=timedelta(minutes=15), key=f"edit_start_time_{activity.id}"),
        )
        edit_end = datetime.combine(
            e1.date_input("Fin (date)", value=activity.end.date(), key=f"edit_end_day_{activity.id}"),
            e2.time_input("Fin (heure)", value=activity.end.time(), step=timedelta(minutes=15), key=f"edit_end_time_{activity.id}"),
        )
        edit_notes = st.text_input("Notes", value=activity.notes or "", key=f"edit_notes_{activity.id}")
        if st.button("Enregistrer les modifications", use_container_width=True):
            if edit_end <= edit_start:
                st.warning("La fin doit être postérieure au début.")
            else:
                repo.update_activity(replace(
                    activity, type=edit_type, start=edit_start, end=edit_end,
                    notes=(edit_notes.strip() or None),
                ))
                st.session_state["_flash_success"] = "Activité mise à jour."
                st.rerun()

        confirm = st.checkbox("Je confirme la suppression définitive (interventions comprises)", key=f"delete_{activity.id}")
        if st.button("Supprimer l'activité", type="primary", disabled=not confirm, use_container_width=True):
            repo.delete_activity(activity.id)
            st.session_state["_flash_success"] = f"{activity.type.label} du {activity.start:%d/%m} supprimée."
            st.rerun()

# =========================
# ⚙️ Paramètres de rémunération
# =========================
st.subheader("⚙️ Paramètres")
with st.form("settings"):
    st.caption("Plages horaires de garde en caserne (HH:MM)")
    slots = []
    for n, slot in enumerate(worker.config.time_slots, start=1):
        s1, s2 = st.columns(2)
        slots.append({
            "start": s1.text_input(f"Plage {n} : début", value=f"{slot.start:%H:%M}"),
            "end": s2.text_input(f"Plage {n} : fin", value=f"{slot.end:%H:%M}"),
        })
    st.caption("Coefficients (100 % = taux horaire du grade)")
    percents = {
        t.value: st.number_input(
            t.label, min_value=int(MIN_COEFFICIENT * 100), max_value=int(MAX_COEFFICIENT * 100),
            value=int(round(worker.config.coefficient(t) * 100)), step=1,
        )
        for t in SubActivityType
    }
    if st.form_submit_button("Enregistrer les paramètres", use_container_width=True):
        try:
            config = merge_worker_config({
                "time_slots": slots,
                "coefficients": {k: v / 100 for k, v in percents.items()},
            })
        except ConfigurationError as e:
            st.error(f"Paramètres invalides : {e}")
        else:
            repo.save_worker(replace(worker, config=config))
            st.session_state["_flash_success"] = "Paramètres enregistrés."
            st.rerun()

# =========================
# 👤 Profil
# =========================
st.subheader("👤 Profil")
with st.form("profile"):
    p1, p2 = st.columns(2)
    first_name = p1.text_input("Prénom", value=worker.first_name)
    last_name = p2.text_input("Nom", value=worker.last_name)
    grade = st.selectbox("Grade", list(Grade), index=list(Grade).index(worker.grade), format_func=lambda g: g.value)
    station = st.text_input("Caserne", value=worker.station or "")
    if st.form_submit_button("Enregistrer le profil", use_container_width=True):
        repo.save_worker(replace(
            worker, first_name=first_name.strip(), last_name=last_name.strip(),
            grade=grade, station=(station.strip() or None),
        ))
        st.session_state["_flash_success"] = "Profil enregistré."
        st.rerun()
