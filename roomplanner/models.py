from typing import List

from pydantic import BaseModel


class TimeRange(BaseModel):
    start: str  # "HH:MM"
    end: str


class ScheduleRecord(BaseModel):
    roomNumber: str
    day: str  # "Monday".."Sunday"
    timeSlot: TimeRange
    course: str = ""
    batch: str = "All"
    teacher: str = ""
    isBiWeekly: bool = False
    needsReview: bool = False
    rawContent: str = ""


class ScheduleExtraction(BaseModel):
    schedules: List[ScheduleRecord] = []
    rooms: List[str] = []  # de-duplicated, discovery order


class PageLabel(BaseModel):
    pageNumber: int
    batch: str = ""
    section: str = ""
    semester: str = ""
    fullText: str
    rawText: str = ""


class PageMapping(BaseModel):
    totalPages: int
    pageMapping: List[PageLabel] = []
