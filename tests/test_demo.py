from pktframe.demo import main, run_cycle
from pktframe.packet import ByteOrder, Packet


def _packet():
    return Packet(ByteOrder.BIG, 0xFFAA, 2, 4, 2, 0x12345678)


def _bytes_of(line, prefix):
    assert line.startswith(prefix)
    return bytes(int(part, 16) for part in line[len(prefix):].split())


def test_run_cycle_report_line():
    lines = run_cycle(_packet(), 0, 0)
    assert len(lines) == 3
    assert lines[2] == '0->0->{"app_name":"a.out","app_size":1024}->0'


def test_run_cycle_frame_decodes():
    lines = run_cycle(_packet(), 3, 1)
    frame = _bytes_of(lines[0], "data:")
    payload = _bytes_of(lines[1], "payload:")
    assert frame[:2] == b"\xff\xaa"
    assert frame[8:8 + len(payload)] == payload

    reader = _packet()
    reader.set_data(frame)
    assert reader.unserialize() == payload
    assert reader.command() == 1
    assert reader.fetch_json() == {"app_name": "a.out", "app_size": 1025}
    assert reader.fetch_int() == 1
    assert lines[2].startswith("3->1->")


def test_main_prints_begin_and_end(capsys):
    assert main([]) == 0
    out = capsys.readouterr().out.splitlines()
    assert out[0] == "begin!"
    assert out[-1] == "end!"
    reports = [line for line in out if "->" in line]
    assert reports == [
        '0->0->{"app_name":"a.out","app_size":1024}->0',
        '0->1->{"app_name":"a.out","app_size":1025}->1',
    ]