"""ConfiguracaoMensal model: working days and potential hours per month."""

from sqlalchemy import Column, Integer, Numeric, UniqueConstraint

from portal_financas.database import Base


class ConfiguracaoMensal(Base):
    """Process-wide lookup row used to turn salaries into hour-based figures.

    Months without a row fall back to ``DIAS_UTEIS_PADRAO`` /
    ``HORAS_POTENCIAIS_PADRAO`` from settings.

    Attributes:
        id: Primary key.
        mes: Month number (1–12).
        ano: Calendar year.
        dias_uteis: Working days in the month.
        horas_potenciais: Potential working hours in the month.
    """

    __tablename__ = "configuracao_mensal"
    __table_args__ = (
        UniqueConstraint("mes", "ano", name="uq_configuracao_mensal_mes_ano"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    mes = Column(Integer, nullable=False)
    ano = Column(Integer, nullable=False)
    dias_uteis = Column(Integer, nullable=False)
    horas_potenciais = Column(Numeric(7, 2), nullable=False)
