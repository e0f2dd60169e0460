from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .database.connection import DBConfig, DatabaseConnection
from .devices.mysql_device_repository import MySQLDeviceRepository
from .devices.service import DeviceCatalogService, DeviceRequestService
from .directory.mysql_actor_directory import MySQLActorDirectory
from .leaves.mysql_leave_repository import MySQLLeaveRepository
from .leaves.service import LeaveService
from .rooms.mysql_room_repository import MySQLRoomRepository
from .rooms.service import BookingService, MeetingRoomService


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection

    directory: MySQLActorDirectory
    devices_repo: MySQLDeviceRepository
    rooms_repo: MySQLRoomRepository
    leaves_repo: MySQLLeaveRepository

    device_catalog_service: DeviceCatalogService
    device_request_service: DeviceRequestService
    meeting_room_service: MeetingRoomService
    booking_service: BookingService
    leave_service: LeaveService


def build_container(*, db_config: dict, lock_wait_timeout: Optional[int] = None) -> Container:
    config = DBConfig.from_dict(db_config, lock_wait_timeout=lock_wait_timeout)
    conn = DatabaseConnection.get_instance(config)

    directory = MySQLActorDirectory(conn)
    devices_repo = MySQLDeviceRepository(conn)
    rooms_repo = MySQLRoomRepository(conn)
    leaves_repo = MySQLLeaveRepository(conn)

    return Container(
        conn=conn,
        directory=directory,
        devices_repo=devices_repo,
        rooms_repo=rooms_repo,
        leaves_repo=leaves_repo,
        device_catalog_service=DeviceCatalogService(devices_repo),
        device_request_service=DeviceRequestService(devices_repo),
        meeting_room_service=MeetingRoomService(rooms_repo),
        booking_service=BookingService(rooms_repo),
        leave_service=LeaveService(leaves_repo, directory),
    )
