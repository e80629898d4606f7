# =============================================================================
# File:        stoic/db/model.py
# Purpose:     Bazni Model: deklarativna polja -> generisani SQL (CRUD),
#              tipizirano mapiranje vrednosti i ReturnHelper ishodi
# Author:      Aleksandar Popović
# Created:     2025-08-08
# Updated:     2025-09-02
# =============================================================================

from __future__ import annotations
import json
import traceback
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from stoic.db.base_db_class import BaseDbClass
from stoic.db.query import (
    ClassPropertyNotFoundException,
    FetchMode,
    InvalidFieldError,
    ParamType,
)
from stoic.helpers.core_helper import format_db_datetime, parse_db_datetime
from stoic.managers.log_manager import LogManager
from stoic.utilities.enum_base import EnumBase
from stoic.utilities.return_helper import ReturnHelper
from stoic.utilities.string_helper import StringHelper


class BaseDbTypes(EnumBase):
    INTEGER = 0
    STRING = 1
    BOOLEAN = 2
    NILL = 3
    DATETIME = 4

    def get_db_type(self) -> ParamType:
        """Tip parametra koji se koristi pri vezivanju kolone ovog tipa."""
        if self in (BaseDbTypes.INTEGER, BaseDbTypes.BOOLEAN):
            return ParamType.INT
        if self is BaseDbTypes.NILL:
            return ParamType.NULL
        return ParamType.STR


class BaseDbQueryTypes(EnumBase):
    INVALID = 0
    DELETE = 1
    INSERT = 2
    SELECT = 3
    UPDATE = 4


class BaseDbColumnFlags(EnumBase):
    IS_KEY = 1
    SHOULD_INSERT = 2
    SHOULD_UPDATE = 4
    ALLOWS_NULLS = 8
    AUTO_INCREMENT = 16


@dataclass(frozen=True)
class BaseDbField:
    """Jedno polje modela: kolona, tip i zastavice. Nepromenljivo posle konstrukcije."""
    column: str
    type: BaseDbTypes
    is_key: bool
    should_insert: bool
    should_update: bool
    allows_nulls: bool = False
    auto_increment: bool = False
    enum_class: Optional[type] = None

    def __post_init__(self):
        if StringHelper(self.column).is_empty_or_null_or_whitespace():
            raise InvalidFieldError("Cannot create a BaseDbField object with no column name")

        field_type = BaseDbTypes.try_get_enum(self.type) if not isinstance(self.type, str) else None
        if field_type is None:
            raise InvalidFieldError("Cannot create a BaseDbField object with an invalid BaseDbTypes value")

        if self.enum_class is not None and not (isinstance(self.enum_class, type) and issubclass(self.enum_class, EnumBase)):
            raise InvalidFieldError("BaseDbField enum_class must be an EnumBase subclass")

        object.__setattr__(self, "type", field_type)
        for flag in ("is_key", "should_insert", "should_update", "allows_nulls", "auto_increment"):
            object.__setattr__(self, flag, bool(getattr(self, flag)))

    @classmethod
    def from_flags(cls, column: str, type: int, flags: int, enum_class: Optional[type] = None) -> "BaseDbField":
        flags = int(flags)
        return cls(
            column,
            type,
            bool(flags & BaseDbColumnFlags.IS_KEY),
            bool(flags & BaseDbColumnFlags.SHOULD_INSERT),
            bool(flags & BaseDbColumnFlags.SHOULD_UPDATE),
            bool(flags & BaseDbColumnFlags.ALLOWS_NULLS),
            bool(flags & BaseDbColumnFlags.AUTO_INCREMENT),
            enum_class,
        )


class BaseDbModel(BaseDbClass):
    """
    Jednostavan ORM bez mnogo ceremonije.

    Podklasa u _setup_model() postavi tabelu (set_table_name) i polja
    (set_column). Vrednosti polja žive u mapi po instanci; model.ime i
    get_value/set_value idu kroz nju. create/read/update/delete generišu SQL
    iz polja i uvek vraćaju ReturnHelper, greške drajvera ne izlaze napolje.
    """

    def __init__(self, db: Any, log: Optional[LogManager] = None):
        self._db_fields: Dict[str, BaseDbField] = {}
        self._values: Dict[str, Any] = {}
        self._db_table: Optional[StringHelper] = None
        self._ready = False
        super().__init__(db, log)
        self._ready = True

    # --------------------------------------------------------------------- #
    # Konstrukcija iz niza
    # --------------------------------------------------------------------- #

    @classmethod
    def from_array(cls, source: Dict[str, Any], db: Any, log: Optional[LogManager] = None,
                   exclusions: Optional[Iterable[str]] = None) -> "BaseDbModel":
        """
        Nova instanca iz ravnog rečnika (red iz baze, payload...).
        Broj ključeva mora tačno odgovarati broju polja (minus exclusions).
        Ključ se prvo traži među kolonama, pa među imenima polja (bez obzira na velika slova).
        """
        if not source:
            raise ValueError(f"Cannot populate {cls.__name__} from empty source array")

        ret = cls(db, log)
        excluded = set(exclusions or []) & set(ret._db_fields)
        expected = len(ret._db_fields) - len(excluded)

        if expected != len(source):
            raise ValueError(
                f"Cannot populate {cls.__name__} from array, variable count mismatch "
                f"(class: {expected}, source: {len(source)})"
            )

        for key, value in source.items():
            lowered = str(key).lower()
            found = False

            for prop, field in ret._db_fields.items():
                if StringHelper(field.column).compare(lowered, case_insensitive=True) == 0:
                    ret.set_property_db_value(prop, field, value)
                    found = True
                    break

            if not found:
                for prop in ret._db_fields:
                    if prop.lower() == lowered:
                        ret.set_value(prop, value)
                        found = True
                        break

            if not found:
                raise ClassPropertyNotFoundException(f"Couldn't find match for {key} index while populating {cls.__name__}")

        return ret

    # --------------------------------------------------------------------- #
    # Hook-ovi
    # --------------------------------------------------------------------- #

    def _initialize(self) -> None:
        self._setup_model()

    def _setup_model(self) -> None:
        """Podklase ovde registruju tabelu i polja."""
        return None

    def _can_create(self) -> Union[bool, ReturnHelper]:
        return True

    def _can_read(self) -> Union[bool, ReturnHelper]:
        return True

    def _can_update(self) -> Union[bool, ReturnHelper]:
        return True

    def _can_delete(self) -> Union[bool, ReturnHelper]:
        return True

    # --------------------------------------------------------------------- #
    # Registracija
    # --------------------------------------------------------------------- #

    def set_table_name(self, name: str) -> None:
        self._db_table = StringHelper(name)

    def set_column(self, prop: str, column: str, type: int, is_key_or_flags: Union[int, bool],
                   should_insert: bool = False, should_update: bool = False, allows_nulls: bool = False,
                   auto_increment: bool = False, enum_class: Optional[type] = None, default: Any = None) -> None:
        """
        is_key_or_flags: bool (is_key) ili kompozit BaseDbColumnFlags vrednosti;
        u drugom slučaju ostale zastavice se čitaju iz kompozita.
        """
        if prop in self._db_fields:
            raise InvalidFieldError("Cannot overwrite a field that has already been set")

        if isinstance(is_key_or_flags, bool):
            field = BaseDbField(column, type, is_key_or_flags, should_insert, should_update,
                                allows_nulls, auto_increment, enum_class)
        else:
            field = BaseDbField.from_flags(column, type, is_key_or_flags, enum_class)

        self._db_fields[prop] = field
        self._values[prop] = None
        if default is not None:
            self.set_value(prop, default)

    # --------------------------------------------------------------------- #
    # Pristup vrednostima
    # --------------------------------------------------------------------- #

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_") or "_db_fields" not in self.__dict__:
            raise AttributeError(name)
        return self.get_value(name)

    def __setattr__(self, name: str, value: Any) -> None:
        fields = self.__dict__.get("_db_fields")
        if fields is not None and name in fields:
            self.set_value(name, value)
            return

        if name.startswith("_") or not self.__dict__.get("_ready", False) \
                or name in self.__dict__ or hasattr(type(self), name):
            object.__setattr__(self, name, value)
            return

        self.set_value(name, value)

    def get_value(self, name: str) -> Any:
        if name not in self._db_fields:
            self.log.warning("Attempted to retrieve non-existent field: {field}", {"field": name})
            return None

        value = self._values.get(name)
        if isinstance(value, StringHelper):
            return value.data()
        return value

    def set_value(self, name: str, value: Any) -> None:
        if name not in self._db_fields:
            self.log.warning("Attempted to set non-existent field: {field} => {value}", {"field": name, "value": value})
            return

        field = self._db_fields[name]

        if value is None and field.allows_nulls:
            self._values[name] = None
        elif field.enum_class is not None and not isinstance(value, field.enum_class):
            self._values[name] = self._to_enum(field, value)
        elif field.type is BaseDbTypes.STRING and field.enum_class is None:
            self._values[name] = StringHelper(value)
        elif field.type is BaseDbTypes.BOOLEAN:
            self._values[name] = self._to_bool(value)
        elif field.type is BaseDbTypes.DATETIME and not isinstance(value, datetime):
            self._values[name] = parse_db_datetime(value if value is not None else "now")
        elif field.type is BaseDbTypes.INTEGER and isinstance(value, str) and value.strip().lstrip("-").isdigit():
            self._values[name] = int(value)
        else:
            self._values[name] = value

    @staticmethod
    def _to_bool(value: Any) -> bool:
        """'0'/'1', 'true'/'false', 'yes'/'no', 'on'/'off' -> bool; ostalo po Python istinitosti."""
        if isinstance(value, str):
            text = value.strip().lower()
            if text.lstrip("-").isdigit():
                return int(text) != 0
            if text in ("true", "yes", "y", "on"):
                return True
            if text in ("false", "no", "n", "off", ""):
                return False
        return bool(value)

    @staticmethod
    def _to_enum(field: BaseDbField, value: Any) -> Optional[EnumBase]:
        if value is None:
            return None
        if field.type is BaseDbTypes.STRING and isinstance(value, str) and not value.strip().lstrip("-").isdigit():
            return field.enum_class.from_string(value, allow_none=field.allows_nulls)
        return field.enum_class(int(value))

    # --------------------------------------------------------------------- #
    # Mapiranje ka/iz baze
    # --------------------------------------------------------------------- #

    def get_property_db_value(self, prop: str, field: BaseDbField) -> Tuple[str, Any, ParamType]:
        """(':prop', vrednost za bazu, tip parametra)"""
        value = self._values.get(prop)
        param_type = field.type.get_db_type()

        if field.allows_nulls and value is None:
            return f":{prop}", None, ParamType.NULL
        if isinstance(value, datetime):
            return f":{prop}", format_db_datetime(value), param_type
        if field.type is BaseDbTypes.STRING and isinstance(value, StringHelper):
            return f":{prop}", value.data(), param_type
        if field.type is BaseDbTypes.BOOLEAN:
            return f":{prop}", 1 if value else 0, param_type
        if field.type is BaseDbTypes.STRING and isinstance(value, EnumBase):
            return f":{prop}", value.name, param_type
        if field.type is BaseDbTypes.INTEGER and isinstance(value, EnumBase):
            return f":{prop}", int(value), param_type

        return f":{prop}", value, param_type

    def set_property_db_value(self, prop: str, field: BaseDbField, value: Any) -> None:
        """Vrednost iz baze -> vrednost polja (datumi u UTC)."""
        if field.type is BaseDbTypes.DATETIME and value is not None:
            self._values[prop] = parse_db_datetime(value, timezone.utc)
        elif field.type is BaseDbTypes.BOOLEAN:
            self._values[prop] = self._to_bool(value)
        elif field.enum_class is not None:
            self._values[prop] = self._to_enum(field, value)
        elif field.type is BaseDbTypes.STRING:
            self._values[prop] = StringHelper(value)
        else:
            self._values[prop] = value

    # --------------------------------------------------------------------- #
    # Generisanje SQL-a
    # --------------------------------------------------------------------- #

    def _quotes(self) -> Tuple[str, str]:
        return self.db.get_driver_info().quotes

    def prep_column(self, column: str) -> str:
        open_q, close_q = self._quotes()
        return f"{open_q}{column}{close_q}"

    def get_db_table_name(self) -> str:
        table = self._db_table.data() if self._db_table is not None else None
        return self.prep_column(table or "")

    def get_db_columns(self) -> Dict[str, BaseDbField]:
        return dict(self._db_fields)

    def get_class_name(self) -> str:
        return self.class_name

    def get_short_class_name(self) -> str:
        return self.short_class_name

    def generate_class_query(self, query_type: Union[int, BaseDbQueryTypes], include_key_filter: bool = True) -> str:
        """SQL za dati tip upita, kolone u redosledu registracije. INSERT nikad nema WHERE."""
        query_type = BaseDbQueryTypes.try_get_enum(query_type)
        if query_type is None or query_type is BaseDbQueryTypes.INVALID:
            return ""

        insert_columns: List[str] = []
        insert_values: List[str] = []
        select_columns: List[str] = []
        update_columns: List[str] = []
        key_strings: List[str] = []

        for prop, field in self._db_fields.items():
            if field.should_insert:
                insert_columns.append(self.prep_column(field.column))
                insert_values.append(f":{prop}")
            if field.is_key:
                key_strings.append(f"{self.prep_column(field.column)} = :{prop}")
            if field.should_update:
                update_columns.append(f"{self.prep_column(field.column)} = :{prop}")
            select_columns.append(self.prep_column(field.column))

        table = self.get_db_table_name()

        if query_type is BaseDbQueryTypes.DELETE:
            sql = f"DELETE FROM {table}"
        elif query_type is BaseDbQueryTypes.INSERT:
            sql = f"INSERT INTO {table} ({', '.join(insert_columns)}) VALUES ({', '.join(insert_values)})"
        elif query_type is BaseDbQueryTypes.SELECT:
            sql = f"SELECT {', '.join(select_columns)} FROM {table}"
        else:
            sql = f"UPDATE {table} SET {', '.join(update_columns)}"

        if query_type is not BaseDbQueryTypes.INSERT and include_key_filter and key_strings:
            sql += " WHERE " + " AND ".join(key_strings)

        return sql

    # --------------------------------------------------------------------- #
    # CRUD
    # --------------------------------------------------------------------- #

    def _can_proceed(self, operation: str, value: Union[bool, ReturnHelper], ret: ReturnHelper) -> bool:
        """
        Da li odgovor proceed-hook-a dozvoljava generisani upit. Poruke iz
        lošeg ReturnHelper-a se loguju i kopiraju u ret.
        """
        if isinstance(value, ReturnHelper):
            if not value.is_good():
                for msg in value.get_messages():
                    self.log.error(msg)
                    ret.add_message(msg)
                return False
        elif value is False:
            msg = f"Unable to '{operation}', {self.class_name} returned false"
            self.log.error(msg)
            ret.add_message(msg)
            return False

        if len(self._db_fields) < 1:
            msg = f"Can't perform generated '{operation}' on {self.class_name} without registered fields"
            self.log.error(msg)
            ret.add_message(msg)
            return False

        return True

    def _params_for(self, predicate) -> Dict[str, Tuple[Any, ParamType]]:
        params: Dict[str, Tuple[Any, ParamType]] = {}
        for prop, field in self._db_fields.items():
            if predicate(field):
                name, value, ptype = self.get_property_db_value(prop, field)
                params[name] = (value, ptype)
        return params

    def _run_generated(self, sql: str, params: Dict[str, Tuple[Any, ParamType]], intro: str, ret: ReturnHelper):
        """Priprema, vezuje i izvršava; None ako konekcija nije aktivna."""
        stmt = self.db.prepare(sql)
        if stmt is None:
            ret.add_message(f"Can't perform generated query on {self.class_name}, database connection is not active")
            return None

        param_output = {}
        for name, (value, ptype) in params.items():
            stmt.bind_value(name, value, ptype)
            param_output[name] = value

        self.log.info(intro + "\n\tQuery: {SQL}\n\tParams: {PARAMS}",
                      {"SQL": sql, "PARAMS": json.dumps(param_output, default=str)})

        return stmt, stmt.execute()

    def create(self) -> ReturnHelper:
        ret = ReturnHelper()
        ret.make_bad()

        if not self._can_proceed("create", self._can_create(), ret):
            return ret

        params = self._params_for(lambda f: f.should_insert)
        auto_inc = next((p for p, f in self._db_fields.items() if f.auto_increment), None)

        if len(params) < 1:
            ret.add_message("Can't perform generated 'create', no fields available for insertion")
            self.log_errors(ret)
            return ret

        try:
            sql = self.generate_class_query(BaseDbQueryTypes.INSERT)
            result = self._run_generated(sql, params, f"Attempting to create {self.class_name} automatically with...", ret)

            if result is not None:
                if auto_inc is not None:
                    self.log.info(f"Attempting to set autoInc field: {auto_inc}")
                    self.set_value(auto_inc, self.db.last_insert_id())

                ret.make_good()
                self.log.info(f"Successfully created {self.class_name}")
        except self.db.error_types as ex:
            self.log.error(f"Failed to create {self.class_name}: {{ERROR}}", {"ERROR": ex})
            ret.add_message(f"Failed to create {self.class_name}: {ex}")

        self.log_errors(ret)
        return ret

    def read(self) -> ReturnHelper:
        ret = ReturnHelper()
        ret.make_bad()

        if not self._can_proceed("read", self._can_read(), ret):
            return ret

        params = self._params_for(lambda f: f.is_key)

        if len(params) < 1:
            ret.add_message("Can't perform generated 'read', no fields available for query")
            self.log_errors(ret)
            return ret

        stmt = None
        try:
            sql = self.generate_class_query(BaseDbQueryTypes.SELECT)
            result = self._run_generated(sql, params, f"Attempting to 'read' {self.class_name}..", ret)

            if result is not None:
                stmt, found = result

                # drajveri bez pouzdanog rowcount-a za SELECT se oslanjaju na execute()
                if self.db.get_driver_info().reliable_select_rowcount:
                    found = stmt.row_count() > 0

                if found:
                    row = stmt.fetch(FetchMode.ASSOC)

                    if row is None:
                        ret.add_message("No results returned for generated 'read' query, read aborted")
                    else:
                        self._populate_from_row(row)
                        ret.make_good()
                else:
                    ret.add_message("No results found for generated 'read' query, read aborted")
        except self.db.error_types as ex:
            self.log.error(f"Failed to read {self.class_name} object with error: {{ERROR}}", {"ERROR": ex})
            ret.add_message(f"Failed to read {self.class_name}: {ex}")
        except (ValueError, TypeError) as ex:
            # red postoji, ali vrednost ne može da se mapira na polje (npr. nepoznat enum)
            self.log.error(f"Failed to read {self.class_name}, invalid row value: {{ERROR}}", {"ERROR": ex})
            ret.add_message(f"Failed to read {self.class_name}: {ex}")
        finally:
            if stmt is not None:
                stmt.close()

        self.log_errors(ret)
        return ret

    def _populate_from_row(self, row: Dict[str, Any]) -> None:
        """Sva polja iz reda ili nijedno: na grešci se vraćaju prethodne vrednosti."""
        snapshot = dict(self._values)
        lowered = {str(k).lower(): v for k, v in row.items()}
        try:
            for prop, field in self._db_fields.items():
                value = row[field.column] if field.column in row else lowered.get(field.column.lower())
                self.set_property_db_value(prop, field, value)
        except (ValueError, TypeError):
            self._values = snapshot
            raise

    def update(self) -> ReturnHelper:
        ret = ReturnHelper()
        ret.make_bad()

        if not self._can_proceed("update", self._can_update(), ret):
            self.log.error("Not allowed to update.")
            return ret

        keys = self._params_for(lambda f: f.is_key)
        updates = self._params_for(lambda f: f.should_update)

        if len(keys) < 1:
            ret.add_message("Can't perform generated 'update' on class without primary fields")
            self.log_errors(ret)
            return ret

        if len(updates) < 1:
            ret.add_message("Can't perform generated 'update', no fields available for update")
            self.log_errors(ret)
            return ret

        try:
            sql = self.generate_class_query(BaseDbQueryTypes.UPDATE)
            result = self._run_generated(sql, {**keys, **updates}, f"Attempting to 'update' {self.class_name}..", ret)

            if result is not None:
                ret.make_good()
                self.log.info(f"Successfully updated {self.class_name}")
        except self.db.error_types as ex:
            self.log.error(f"Failed to update {self.class_name} with error: {{ERROR}}", {"ERROR": ex})
            ret.add_message(f"Failed to update {self.class_name} with error: {ex}")

        self.log_errors(ret)
        return ret

    def delete(self) -> ReturnHelper:
        ret = ReturnHelper()
        ret.make_bad()

        if not self._can_proceed("delete", self._can_delete(), ret):
            return ret

        keys = self._params_for(lambda f: f.is_key)

        if len(keys) < 1:
            ret.add_message("Can't perform generated 'delete', no fields available for query")
            self.log_errors(ret)
            return ret

        try:
            sql = self.generate_class_query(BaseDbQueryTypes.DELETE)
            result = self._run_generated(sql, keys, "Attempting to run generated 'delete'..", ret)

            if result is not None:
                ret.make_good()
                self.log.info(f"Successfully deleted {self.class_name}")
        except self.db.error_types as ex:
            self.log.error(f"Failed to delete {self.class_name} with error: {{ERROR}}", {"ERROR": ex})
            ret.add_message(f"Failed to delete {self.class_name}: {ex}")

        self.log_errors(ret)
        return ret

    def log_errors(self, ret: ReturnHelper) -> None:
        """Loguje poruke lošeg ReturnHelper-a, uz mesto odakle je pozvano."""
        if not (ret.is_bad() and ret.has_messages()):
            return

        caller = traceback.extract_stack(limit=2)[0]
        self.log.error("BaseDbModel error log originating from {FILE}:{LINE}",
                       {"FILE": caller.filename, "LINE": caller.lineno})
        for message in ret.get_messages():
            self.log.error(message)

    # --------------------------------------------------------------------- #
    # Izvoz
    # --------------------------------------------------------------------- #

    def to_array(self) -> Dict[str, Any]:
        return {prop: self.get_value(prop) for prop in self._db_fields}

    def to_serializable_array(self) -> Dict[str, Any]:
        ret: Dict[str, Any] = {}
        for prop, field in self._db_fields.items():
            value = self.get_value(prop)
            if field.type is BaseDbTypes.DATETIME and isinstance(value, datetime):
                ret[prop] = format_db_datetime(value)
            elif isinstance(value, EnumBase):
                ret[prop] = int(value)
            else:
                ret[prop] = value
        return ret

    def to_json(self) -> str:
        return json.dumps(self.to_serializable_array())
