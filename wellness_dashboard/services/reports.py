"""Report assembly for the wellness dashboard.

Each public method is one report: resolve the window, read records, run them
through attribution and bucketing, and shape the response. Nothing is cached;
every call recomputes from source rows.
"""

from collections import Counter
from datetime import date, timedelta

from sqlalchemy.orm import Session

from wellness_dashboard.core.config import Settings, settings as default_settings
from wellness_dashboard.core.logging import get_logger
from wellness_dashboard.db.schemas import (
    CategoryChartPoint,
    ClosingOut,
    ClosingReport,
    DailyClosingsOut,
    DailyOccupancyOut,
    DailyRegistrationsOut,
    DailySalesOut,
    DateRangeOut,
    LatestDateOut,
    OccupancyChartPoint,
    OccupancyReport,
    OccupancySummary,
    ProcedureCodeName,
    ProcedureCount,
    RegistrationChartPoint,
    RegistrationOut,
    RegistrationReport,
    SalesTrendPoint,
)
from wellness_dashboard.observability.metrics import observe_report
from wellness_dashboard.services.attribution import (
    classify_first_occurrences,
    earliest_per_group,
    excludes_term,
    match_same_day,
)
from wellness_dashboard.services.bucketing import (
    DateBucket,
    aggregate_by_day,
    category_keys,
    group_by_day,
)
from wellness_dashboard.services.date_range import DateRange, resolve_date_range, today_in
from wellness_dashboard.services.occupancy import CONSULTATION, TREATMENT, occupancy_series
from wellness_dashboard.services.records import UNKNOWN_CATEGORY, TransactionRecord
from wellness_dashboard.services.source import DateSource, RecordSource
from wellness_dashboard.services.trends import series_mean, summarize

logger = get_logger(__name__)

NEW_PATIENT = "new"
EXISTING_PATIENT = "existing"
UNKNOWN_PROCEDURE = "Unknown Procedure"


def _date_range_out(date_range: DateRange) -> DateRangeOut:
    return DateRangeOut(start=date_range.start, end=date_range.end)


def _category_chart(buckets: list[DateBucket]) -> list[CategoryChartPoint]:
    return [CategoryChartPoint(date=b.date, values=dict(b.counts)) for b in buckets]


class ReportService:
    """Builds dashboard reports from a request-scoped database session."""

    def __init__(self, db: Session, settings: Settings = default_settings):
        self.settings = settings
        self.source = RecordSource(db, settings)

    def _today(self) -> date:
        return today_in(self.settings.report_tz)

    def _resolve(
        self,
        start: date | None,
        end: date | None,
        window_days: int,
        *sources: DateSource,
    ) -> DateRange:
        latest = None
        if start is None or end is None:
            latest = self.source.latest_date(*sources)
        return resolve_date_range(start, end, latest, window_days, self._today())

    # -- latest date ----------------------------------------------------

    def latest_date(self) -> LatestDateOut:
        with observe_report("latest_date"):
            latest = self.source.latest_date(
                DateSource.INVOICES,
                DateSource.CONSULTATIONS,
                DateSource.PRESCRIPTIONS,
            )
        return LatestDateOut(latest_date=latest)

    # -- sales ----------------------------------------------------------

    def daily_sales_snapshot(self) -> DailySalesOut:
        """Totals for the latest invoiced day, with the change from the day before."""
        with observe_report("daily_sales") as observation:
            latest = self.source.latest_date(DateSource.INVOICES)
            if latest is None:
                logger.info("No invoices found; returning empty sales snapshot")
                return DailySalesOut(latest_date=self._today())

            window = DateRange(latest - timedelta(days=1), latest)
            invoices = self.source.sales_invoices(window)
            observation.add_rows(len(invoices))
            previous, current = aggregate_by_day(invoices, window)

            pending_count, pending_total = self.source.pending_payments()

        return DailySalesOut(
            latest_date=latest,
            total_visits=current.total,
            total_sales=round(current.amount, 2),
            avg_transaction=round(current.amount / current.total, 2) if current.total else 0.0,
            pending_count=pending_count,
            pending_total=pending_total,
            trend=summarize([previous.amount, current.amount], trend_ndigits=1).trend,
        )

    def sales_trend(self, start: date | None = None, end: date | None = None) -> list[SalesTrendPoint]:
        """Daily sales and visit counts, one entry per day including empty ones."""
        with observe_report("sales_trend") as observation:
            date_range = self._resolve(start, end, self.settings.sales_window_days, DateSource.INVOICES)
            logger.info("Fetching sales trend", **date_range.as_dict())
            invoices = self.source.sales_invoices(date_range)
            observation.add_rows(len(invoices))
            buckets = aggregate_by_day(invoices, date_range)

        return [
            SalesTrendPoint(date=b.date, total_sales=round(b.amount, 2), visit_count=b.total)
            for b in buckets
        ]

    # -- registrations --------------------------------------------------

    def daily_registrations(
        self, start: date | None = None, end: date | None = None
    ) -> RegistrationReport:
        """Registration-fee invoices split into new and returning patients.

        A patient's first fee invoice ever is "new"; the lookup spans the whole
        history, so a February invoice is "existing" if January had one.
        """
        with observe_report("daily_registration") as observation:
            date_range = self._resolve(
                start, end, self.settings.sales_window_days, DateSource.REGISTRATION_INVOICES
            )
            logger.info("Fetching daily registrations", **date_range.as_dict())
            history = self.source.registration_invoices(until=date_range.end)
            observation.add_rows(len(history))

        tagged = [
            item.record.with_category(
                NEW_PATIENT if item.is_new_occurrence else EXISTING_PATIENT,
                is_new_patient=item.is_new_occurrence,
            )
            for item in classify_first_occurrences(history)
            if item.record.occurred_on in date_range
        ]

        buckets = aggregate_by_day(
            tagged, date_range, pinned_categories=(NEW_PATIENT, EXISTING_PATIENT)
        )
        chart_data = [
            RegistrationChartPoint(
                date=b.date,
                new_patients=b.count(NEW_PATIENT),
                existing_patients=b.count(EXISTING_PATIENT),
                total=b.total,
            )
            for b in buckets
        ]

        daily = [
            DailyRegistrationsOut(
                date=day,
                total=len(records),
                new_patients=sum(1 for r in records if r.category == NEW_PATIENT),
                existing_patients=sum(1 for r in records if r.category == EXISTING_PATIENT),
                registrations=[self._registration_out(r) for r in records],
            )
            for day, records in sorted(group_by_day(tagged, date_range).items(), reverse=True)
        ]

        total_new = sum(point.new_patients for point in chart_data)
        total = len(tagged)
        logger.info(
            "Daily registrations computed",
            total=total,
            new=total_new,
            existing=total - total_new,
        )
        return RegistrationReport(
            date_range=_date_range_out(date_range),
            total_registrations=total,
            total_new_patients=total_new,
            total_existing_patients=total - total_new,
            daily_registrations=daily,
            chart_data=chart_data,
        )

    @staticmethod
    def _registration_out(record: TransactionRecord) -> RegistrationOut:
        details = record.details
        return RegistrationOut(
            invoice_id=record.record_id,
            patient_id=record.entity_id,
            patient_name=details.get("patient_name"),
            phone_no=details.get("phone_no"),
            mrn_no=details.get("mrn_no"),
            registration_date=record.occurred_on,
            invoice_code=details.get("invoice_code"),
            receipt_code=details.get("receipt_code"),
            doctor_name=details.get("doctor_name") or "N/A",
            is_new_patient=bool(details.get("is_new_patient")),
        )

    # -- closings -------------------------------------------------------

    def daily_closings(
        self, start: date | None = None, end: date | None = None
    ) -> ClosingReport:
        """Procedure closings: the first paid invoice per patient and procedure.

        Later invoices for the same patient and procedure (installments) are
        absorbed into the first closing and never counted again.
        """
        with observe_report("daily_closing") as observation:
            date_range = self._resolve(
                start, end, self.settings.sales_window_days, DateSource.PAID_INVOICES
            )
            logger.info("Fetching daily closings", **date_range.as_dict())
            invoices = self.source.paid_invoices(until=date_range.end)
            prescriptions = self.source.prescriptions(until=date_range.end)
            observation.add_rows(len(invoices) + len(prescriptions))

        matched = match_same_day(
            invoices,
            prescriptions,
            keep=excludes_term(self.settings.closing_excluded_term),
        )
        closings = [r for r in earliest_per_group(matched) if r.occurred_on in date_range]

        daily = [
            DailyClosingsOut(
                date=day,
                count=len(records),
                closings=[self._closing_out(r) for r in records],
            )
            for day, records in sorted(group_by_day(closings, date_range).items(), reverse=True)
        ]

        breakdown = Counter(
            (r.details.get("procedure_name") or UNKNOWN_PROCEDURE, r.category or UNKNOWN_CATEGORY)
            for r in closings
        )
        procedure_breakdown = [
            ProcedureCount(procedure_name=name, procedure_code=code, count=count)
            for (name, code), count in sorted(
                breakdown.items(), key=lambda item: (-item[1], item[0][1], item[0][0])
            )
        ]

        logger.info(
            "Daily closings computed",
            matched=len(matched),
            closings=len(closings),
            days_with_closings=len(daily),
        )
        return ClosingReport(
            date_range=_date_range_out(date_range),
            total_closings=len(closings),
            daily_closings=daily,
            procedure_breakdown=procedure_breakdown,
            chart_data=_category_chart(aggregate_by_day(closings, date_range)),
        )

    @staticmethod
    def _closing_out(record: TransactionRecord) -> ClosingOut:
        details = record.details
        return ClosingOut(
            invoice_id=record.record_id,
            patient_id=record.entity_id,
            patient_name=details.get("patient_name"),
            phone_no=details.get("phone_no"),
            closing_date=record.occurred_on,
            invoice_code=details.get("invoice_code"),
            receipt_code=details.get("receipt_code"),
            procedure_name=details.get("procedure_name") or UNKNOWN_PROCEDURE,
            procedure_code=record.category or UNKNOWN_CATEGORY,
            doctor_name=details.get("doctor_name") or "N/A",
            is_new_patient=details.get("first_visit_on") == record.occurred_on,
        )

    # -- occupancy ------------------------------------------------------

    def occupancy(self, start: date | None = None, end: date | None = None) -> OccupancyReport:
        """Daily consultation and treatment slot utilization."""
        with observe_report("occupancy_rate") as observation:
            date_range = self._resolve(
                start,
                end,
                self.settings.occupancy_window_days,
                DateSource.CONSULTATIONS,
                DateSource.PRESCRIPTIONS,
            )
            logger.info("Fetching occupancy", **date_range.as_dict())
            consultations = self.source.consultations(date_range)
            prescriptions = self.source.prescriptions(date_range=date_range)
            observation.add_rows(len(consultations) + len(prescriptions))

        slots = consultations + [p.with_category(TREATMENT) for p in prescriptions]
        buckets = aggregate_by_day(slots, date_range, pinned_categories=(CONSULTATION, TREATMENT))
        daily = occupancy_series(buckets, {
            CONSULTATION: self.settings.consultation_capacity,
            TREATMENT: self.settings.treatment_capacity,
        })

        in_range = [p for p in prescriptions if p.occurred_on in date_range]
        procedure_buckets = aggregate_by_day(in_range, date_range)
        names: dict[str, str] = {}
        for record in sorted(in_range, key=lambda r: r.sort_key):
            if record.category not in names and record.details.get("procedure_name"):
                names[record.category] = record.details["procedure_name"]
        procedure_code_names = [
            ProcedureCodeName(code=code, name=names.get(code, code))
            for code in category_keys(in_range)
        ]

        consultation_rates = [day.rates[CONSULTATION] for day in daily]
        treatment_rates = [day.rates[TREATMENT] for day in daily]
        summary = OccupancySummary(
            avg_consultation_occupancy=series_mean(consultation_rates, ndigits=2),
            avg_treatment_occupancy=series_mean(treatment_rates, ndigits=2),
        )
        logger.info(
            "Occupancy computed",
            days=len(daily),
            avg_consultation=summary.avg_consultation_occupancy,
            avg_treatment=summary.avg_treatment_occupancy,
        )

        return OccupancyReport(
            date_range=_date_range_out(date_range),
            daily_occupancy=[
                DailyOccupancyOut(
                    date=day.date,
                    consultation_count=day.counts[CONSULTATION],
                    procedure_count=day.counts[TREATMENT],
                    consultation_occupancy_rate=day.rates[CONSULTATION],
                    treatment_occupancy_rate=day.rates[TREATMENT],
                )
                for day in reversed(daily)
            ],
            consultation_chart_data=[
                OccupancyChartPoint(
                    date=day.date,
                    occupancy=day.rates[CONSULTATION],
                    count=day.counts[CONSULTATION],
                )
                for day in daily
            ],
            treatment_chart_data=[
                OccupancyChartPoint(
                    date=day.date,
                    occupancy=day.rates[TREATMENT],
                    count=day.counts[TREATMENT],
                )
                for day in daily
            ],
            procedure_chart_data=_category_chart(procedure_buckets),
            procedure_code_names=procedure_code_names,
            summary=summary,
        )
